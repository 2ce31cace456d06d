"""
Page Store - File-based persistence of generated pages

Layout per page:
    <root>/<page_id>/app.tsx      component source
    <root>/<page_id>/index.html   viewer document
    <root>/<page_id>/page.json    metadata
    <root>/<page_id>/main.js      built bundle (written by the builder)

Blocking filesystem calls run in worker threads so the event loop stays free.
"""
import asyncio
import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel

from agents.core.builder import ARTIFACT_NAME, library_name
from agents.page_templates import default_title, render_template
from errors import InvalidPageIdError, PageNotFoundError, PersistenceError

logger = logging.getLogger(__name__)

COMPONENT_FILE = "app.tsx"
INDEX_FILE = "index.html"
METADATA_FILE = "page.json"

PAGE_ID_PATTERN = re.compile(r"[A-Za-z0-9_-]{1,64}")

PAGE_TYPE_LABELS = {
    "h5": "H5 mobile",
    "admin": "admin",
    "pc": "PC web",
}


class PageMetadata(BaseModel):
    """Contents of page.json"""
    id: str
    title: str
    pageType: str
    createdAt: datetime
    updatedAt: datetime
    description: Optional[str] = None


def validate_page_id(page_id: str) -> str:
    """Reject ids that could escape the store root"""
    if not isinstance(page_id, str) or not PAGE_ID_PATTERN.fullmatch(page_id):
        raise InvalidPageIdError(
            f"Invalid page id {page_id!r}: use 1-64 letters, digits, '-' or '_'"
        )
    return page_id


def detect_page_type(content: str) -> str:
    """Guess the page type of a page that has no metadata"""
    if "viewport" in content and "width=device-width" in content and "mobile" in content.lower():
        return "h5"
    if "Sider" in content or ("Menu" in content and "admin" in content):
        return "admin"
    if "Layout" in content and "Header" in content:
        return "pc"
    return "h5"


def generate_html_wrapper(page_id: str, title: str = "React Component Page") -> str:
    """Viewer document that loads the page bundle and mounts its component"""
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
    <script crossorigin src="https://unpkg.com/react@18/umd/react.production.min.js"></script>
    <script crossorigin src="https://unpkg.com/react-dom@18/umd/react-dom.production.min.js"></script>
    <script src="https://cdn.tailwindcss.com"></script>
</head>
<body>
    <div id="root"></div>
    <script src="/api/pages/{page_id}/component"></script>
    <script>
        var Component = window.{library_name(page_id)};
        if (Component) {{
            ReactDOM.createRoot(document.getElementById('root')).render(React.createElement(Component));
        }}
    </script>
</body>
</html>
"""


def _now() -> datetime:
    return datetime.now(timezone.utc)


class FilePageStore:
    """Pages stored as directories under ``root``"""

    def __init__(self, root: Path, templates_dir: Path):
        self.root = Path(root)
        self.templates_dir = Path(templates_dir)
        self.root.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def page_dir(self, page_id: str) -> Path:
        return self.root / validate_page_id(page_id)

    def artifact_path(self, page_id: str) -> Path:
        return self.page_dir(page_id) / ARTIFACT_NAME

    def component_path(self, page_id: str) -> Path:
        return self.page_dir(page_id) / COMPONENT_FILE

    def has_artifact(self, page_id: str) -> bool:
        return self.artifact_path(page_id).is_file()

    @staticmethod
    def default_title(page_type: str) -> str:
        return default_title(page_type)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def initialize_page(self, page_id: str, page_type: str, title: Optional[str] = None) -> str:
        """
        Create (or reset) a page from its page-type template

        Returns:
            The initial component source
        """
        page_dir = self.page_dir(page_id)
        title = title or self.default_title(page_type)
        logger.info(f"[initialize_page] page_id={page_id} page_type={page_type} title={title!r}")

        def _write() -> str:
            source = render_template(self.templates_dir, page_type, title)
            now = _now()
            metadata = PageMetadata(
                id=page_id,
                title=title,
                pageType=page_type,
                createdAt=now,
                updatedAt=now,
                description=f"A {PAGE_TYPE_LABELS.get(page_type, page_type)} page",
            )
            page_dir.mkdir(parents=True, exist_ok=True)
            (page_dir / COMPONENT_FILE).write_text(source, encoding="utf-8")
            (page_dir / INDEX_FILE).write_text(generate_html_wrapper(page_id, title), encoding="utf-8")
            (page_dir / METADATA_FILE).write_text(metadata.model_dump_json(indent=2), encoding="utf-8")
            return source

        try:
            return await asyncio.to_thread(_write)
        except OSError as e:
            logger.error(f"[initialize_page] page_id={page_id} failed: {e}")
            raise PersistenceError(f"Failed to initialize page {page_id}: {e}") from e

    async def read_content(self, page_id: str) -> str:
        """Viewer document (index.html)"""
        return await self._read(page_id, INDEX_FILE)

    async def write_content(self, page_id: str, content: str) -> None:
        await self._write(page_id, INDEX_FILE, content)

    async def read_component_source(self, page_id: str) -> Optional[str]:
        """Component source, or None when the page has none yet"""
        try:
            return await self._read(page_id, COMPONENT_FILE)
        except PageNotFoundError:
            return None

    async def write_component_source(self, page_id: str, source: str) -> None:
        await self._write(page_id, COMPONENT_FILE, source)

    async def read_metadata(self, page_id: str) -> Optional[PageMetadata]:
        path = self.page_dir(page_id) / METADATA_FILE

        def _load() -> Optional[PageMetadata]:
            if not path.is_file():
                return None
            return PageMetadata.model_validate_json(path.read_text(encoding="utf-8"))

        return await asyncio.to_thread(_load)

    async def list_pages(self, page_type: Optional[str] = None) -> List[PageMetadata]:
        """
        List pages, newest first

        Args:
            page_type: Only pages of this type; None or "all" for every page
        """
        wanted = None if page_type in (None, "", "all") else page_type
        return await asyncio.to_thread(self._scan, wanted)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _scan(self, page_type: Optional[str]) -> List[PageMetadata]:
        pages: List[PageMetadata] = []
        if not self.root.is_dir():
            return pages

        for entry in self.root.iterdir():
            if not entry.is_dir():
                continue

            metadata_path = entry / METADATA_FILE
            if metadata_path.is_file():
                try:
                    metadata = PageMetadata.model_validate_json(metadata_path.read_text(encoding="utf-8"))
                except (OSError, ValueError) as e:
                    logger.error(f"[list_pages] Unreadable metadata for {entry.name}: {e}")
                    continue
            else:
                # No metadata: detect the type from whatever the page holds
                try:
                    content = self._read_any(entry)
                except OSError as e:
                    logger.error(f"[list_pages] Cannot detect type for {entry.name}: {e}")
                    continue
                stat = entry.stat()
                metadata = PageMetadata(
                    id=entry.name,
                    title=entry.name,
                    pageType=detect_page_type(content),
                    createdAt=datetime.fromtimestamp(stat.st_ctime, tz=timezone.utc),
                    updatedAt=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                )

            if page_type is None or metadata.pageType == page_type:
                pages.append(metadata)

        pages.sort(key=lambda page: page.createdAt, reverse=True)
        return pages

    @staticmethod
    def _read_any(page_dir: Path) -> str:
        for name in (INDEX_FILE, COMPONENT_FILE):
            path = page_dir / name
            if path.is_file():
                return path.read_text(encoding="utf-8")
        raise FileNotFoundError(f"No page content in {page_dir}")

    async def _read(self, page_id: str, name: str) -> str:
        path = self.page_dir(page_id) / name

        def _load() -> str:
            return path.read_text(encoding="utf-8")

        try:
            return await asyncio.to_thread(_load)
        except FileNotFoundError as e:
            raise PageNotFoundError(f"Page {page_id} has no {name}") from e
        except OSError as e:
            raise PersistenceError(f"Failed to read {name} of page {page_id}: {e}") from e

    async def _write(self, page_id: str, name: str, text: str) -> None:
        page_dir = self.page_dir(page_id)

        def _store() -> None:
            page_dir.mkdir(parents=True, exist_ok=True)
            (page_dir / name).write_text(text, encoding="utf-8")

        try:
            await asyncio.to_thread(_store)
        except OSError as e:
            logger.error(f"[write] page_id={page_id} file={name} failed: {e}")
            raise PersistenceError(f"Failed to write {name} of page {page_id}: {e}") from e

        logger.info(f"[write] page_id={page_id} file={name} length={len(text)}")
        await self._touch_metadata(page_id)

    async def _touch_metadata(self, page_id: str) -> None:
        """Bump updatedAt; failures are logged and ignored"""
        path = self.page_dir(page_id) / METADATA_FILE

        def _bump() -> None:
            if not path.is_file():
                return
            data = json.loads(path.read_text(encoding="utf-8"))
            data["updatedAt"] = _now().isoformat()
            path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")

        try:
            await asyncio.to_thread(_bump)
        except (OSError, ValueError) as e:
            logger.warning(f"[update_metadata] page_id={page_id} failed to update timestamp: {e}")


__all__ = [
    "FilePageStore",
    "PageMetadata",
    "validate_page_id",
    "detect_page_type",
    "generate_html_wrapper",
]
