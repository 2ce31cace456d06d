"""
Starter component templates per page type
"""
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

TITLE_PLACEHOLDER = "__PAGE_TITLE__"

DEFAULT_TITLES = {
    "h5": "Mobile Page",
    "admin": "Admin Dashboard",
    "pc": "Desktop Page",
}

DEFAULT_TEMPLATE = """import React, { useState } from 'react';

const App: React.FC = () => {
  const [count, setCount] = useState(0);

  return (
    <div className="min-h-screen bg-gray-50">
      <header className="bg-blue-500 text-white p-4 shadow-md">
        <h1 className="text-xl font-bold">__PAGE_TITLE__</h1>
      </header>
      <main className="container mx-auto p-4">
        <div className="bg-white rounded-lg shadow-md p-6">
          <p className="text-gray-600 mb-4">Describe the page you want and it will be generated here.</p>
          <button
            className="bg-blue-500 hover:bg-blue-600 text-white px-4 py-2 rounded-lg transition-colors"
            onClick={() => setCount(count + 1)}
          >
            Clicked {count} times
          </button>
        </div>
      </main>
    </div>
  );
};

export default App;
"""


def load_template(templates_dir: Path, page_type: str) -> str:
    """Read ``<page_type>.tsx`` from the templates directory, or the built-in default"""
    template_path = Path(templates_dir) / f"{page_type}.tsx"
    try:
        return template_path.read_text(encoding="utf-8")
    except OSError:
        logger.warning(f"[load_template] No template at {template_path}, using default")
        return DEFAULT_TEMPLATE


def render_template(templates_dir: Path, page_type: str, title: str) -> str:
    """Template for the page type with the title filled in"""
    return load_template(templates_dir, page_type).replace(TITLE_PLACEHOLDER, title)


def default_title(page_type: str) -> str:
    return DEFAULT_TITLES.get(page_type, "New Page")
