"""
Prompt builders for page generation, titles and code repair
"""
from typing import Optional

BASE_SYSTEM_PROMPT = (
    "You are an expert React developer. Generate clean, modern React TypeScript "
    "components using React hooks. The component must be a default export named App. "
    "Import React and anything else you use explicitly. Style with Tailwind CSS classes "
    "(preferred) or inline styles. Do not use external CSS files, CSS modules or "
    "third-party UI libraries."
)

PAGE_TYPE_PROMPTS = {
    "h5": (
        "Focus on mobile-first responsive design with touch-friendly interfaces. "
        "Prioritize mobile UX patterns and generous touch targets."
    ),
    "admin": (
        "Create professional admin dashboard layouts with data tables, charts and "
        "management interfaces. Keep spacing and information hierarchy clear for dense data."
    ),
    "pc": (
        "Design desktop-optimized layouts with comprehensive functionality and "
        "professional styling. Use the wider screen real estate appropriately."
    ),
}

TITLE_SYSTEM_PROMPT = (
    "You are a creative title generator. Based on the user's page requirements and page "
    "type, generate a concise, descriptive title (2-6 words) that reflects the page "
    "content and purpose."
)

REPAIR_SYSTEM_PROMPT = (
    "You are a senior frontend engineer who specializes in fixing errors in React "
    "TypeScript code."
)

PAGE_TYPE_LABELS = {
    "h5": "mobile",
    "admin": "admin dashboard",
    "pc": "desktop",
}


def get_system_prompt(page_type: str) -> str:
    """System prompt for content generation, specialised per page type"""
    extra = PAGE_TYPE_PROMPTS.get(page_type)
    if not extra:
        return BASE_SYSTEM_PROMPT
    return f"{BASE_SYSTEM_PROMPT} {extra}"


def build_user_message(user_prompt: str, current_code: Optional[str] = None) -> str:
    """User message asking for a new or modified component"""
    message = f"Generate a React TypeScript component for the following requirements: {user_prompt}"

    if current_code:
        message += f"""

Current code (modify this):
```typescript
{current_code}
```"""

    message += """

Requirements:
- Export as default function named App
- Use TypeScript
- Import React and every hook you use
- Use Tailwind CSS classes (preferred) or inline styles for styling
- Do not use external CSS files, CSS modules or third-party UI libraries
- Return only the complete React component code, wrapped in a ```typescript block. No explanations."""

    return message


def build_title_message(user_prompt: str, page_type: str) -> str:
    """User message asking for a page title"""
    label = PAGE_TYPE_LABELS.get(page_type, "web")
    return (
        f'Please generate a suitable title for this {label} page requirement: "{user_prompt}".\n\n'
        "Return only the title text, no explanations or quotes. The title should be:\n"
        "- 2-6 words\n"
        "- Descriptive and accurate\n"
        "- Suitable for the page type"
    )


def build_repair_prompt(
    source: str,
    error_kind: str,
    error_message: str,
    error_details: Optional[str] = None,
) -> str:
    """Prompt asking the model to fix component source that failed to build"""
    return f"""Fix the errors in the following React TypeScript component.

Error type: {error_kind}
Error message: {error_message}
Details: {error_details or 'none'}

Original code:
{source}

Return the complete fixed code and make sure that:
1. All syntax errors are fixed
2. Every imported module is available (React only, no other libraries)
3. The original functionality and UI structure are kept
4. Styling uses Tailwind CSS classes, not antd or other UI libraries
5. The code is valid TypeScript
6. Only the fixed code is returned, without explanations

Fixed code:
"""
