"""
Helpers for cleaning raw model output
"""
import re

THINK_BLOCK_PATTERN = re.compile(r"<think>.*?</think>\s*", re.DOTALL | re.IGNORECASE)
TS_BLOCK_PATTERN = re.compile(r"```(?:typescript|tsx|ts|jsx|javascript)\s*\n([\s\S]*?)\n```", re.IGNORECASE)
GENERIC_BLOCK_PATTERN = re.compile(r"```[\w-]*\s*\n([\s\S]*?)\n```")


def strip_think_blocks(text: str) -> str:
    """Remove <think>...</think> reasoning emitted by some local models"""
    return THINK_BLOCK_PATTERN.sub("", text or "").strip()


def extract_code(content: str) -> str:
    """
    Extract component source from a model reply

    Prefers a typescript/tsx fenced block, then any fenced block, and
    otherwise assumes the whole reply is source.
    """
    cleaned = strip_think_blocks(content)
    if not cleaned:
        return ""

    match = TS_BLOCK_PATTERN.search(cleaned)
    if match:
        return match.group(1).strip()

    match = GENERIC_BLOCK_PATTERN.search(cleaned)
    if match:
        return match.group(1).strip()

    return cleaned


def clean_title(text: str, max_len: int = 40) -> str:
    """Single-line title without quotes or markdown noise"""
    stripped = strip_think_blocks(text)
    if not stripped:
        return ""
    title = stripped.splitlines()[0].strip().strip("\"'“”#*` ").strip()
    return title[:max_len]


def truncate(text: str, max_len: int = 100) -> str:
    """Shorten text for log lines"""
    if text is None:
        return ""
    if len(text) <= max_len:
        return text
    return text[:max_len] + "..."
