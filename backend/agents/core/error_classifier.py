"""
Error Classifier

Responsibilities:
- Turn raw bundler diagnostics into a tagged ComponentBuildError
- Render user friendly, actionable messages per error kind
- Log classified build errors with the page id

Checks run in a fixed order and the first match wins:
syntax → dependency → config → unknown.
Pure functions, no I/O apart from logging.
"""
import logging
import re
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from errors import CompilerInvocationError

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    """Categories of component build failures"""
    SYNTAX = "syntax"
    DEPENDENCY = "dependency"
    CONFIG = "config"
    UNKNOWN = "unknown"


class ComponentBuildError(BaseModel):
    """A classified component build failure"""
    kind: ErrorKind
    message: str
    details: Optional[str] = None
    raw_error: str = ""
    file: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None


# Summary text per kind
SUMMARIES = {
    ErrorKind.SYNTAX: "Component source contains a syntax error",
    ErrorKind.DEPENDENCY: "Component dependency is missing",
    ErrorKind.CONFIG: "Build configuration error",
    ErrorKind.UNKNOWN: "Component build failed",
}

SYNTAX_SIGNATURES = ("SyntaxError", "Unexpected token")
DEPENDENCY_SIGNATURES = ("Module not found", "Can't resolve")
CONFIG_SIGNATURES = ("Configuration", "config")

SYNTAX_REASON_PATTERN = re.compile(r"SyntaxError: (.+?)(?:\n|$)")
LOCATION_PATTERN = re.compile(r"(.+?):(\d+):(\d+)")
MODULE_PATTERNS = (
    re.compile(r"Can't resolve '(.+?)'"),
    re.compile(r"Module not found: (.+?)'"),
)

DEPENDENCY_FALLBACK_DETAILS = "Dependency resolution failed"


def _matches(text: str, signatures) -> bool:
    return any(signature in text for signature in signatures)


def _normalize(raw: str) -> str:
    # Windows line endings would leak "\r" into extracted details
    return (raw or "").replace("\r\n", "\n").strip()


def classify_build_error(raw: str) -> ComponentBuildError:
    """
    Classify a raw bundler diagnostic

    Args:
        raw: Diagnostic text (stderr/stdout of the failed build)

    Returns:
        ComponentBuildError with kind, summary and details
    """
    text = _normalize(raw)

    if _matches(text, SYNTAX_SIGNATURES):
        return _syntax_error(text)

    if _matches(text, DEPENDENCY_SIGNATURES):
        return ComponentBuildError(
            kind=ErrorKind.DEPENDENCY,
            message=SUMMARIES[ErrorKind.DEPENDENCY],
            details=_dependency_details(text),
            raw_error=text,
        )

    if _matches(text, CONFIG_SIGNATURES):
        return ComponentBuildError(
            kind=ErrorKind.CONFIG,
            message=SUMMARIES[ErrorKind.CONFIG],
            details=text,
            raw_error=text,
        )

    return ComponentBuildError(
        kind=ErrorKind.UNKNOWN,
        message=SUMMARIES[ErrorKind.UNKNOWN],
        details=text,
        raw_error=text,
    )


def _syntax_error(text: str) -> ComponentBuildError:
    error = ComponentBuildError(
        kind=ErrorKind.SYNTAX,
        message=SUMMARIES[ErrorKind.SYNTAX],
        details=text,
        raw_error=text,
    )

    reason = SYNTAX_REASON_PATTERN.search(text)
    if reason and reason.group(1):
        error.details = reason.group(1)
        return error

    location = LOCATION_PATTERN.search(text)
    if location:
        error.file = location.group(1).strip()
        error.line = int(location.group(2))
        error.column = int(location.group(3))
        error.details = (
            f"Syntax error in file {error.file} at line {error.line}, column {error.column}"
        )

    return error


def _dependency_details(text: str) -> str:
    for pattern in MODULE_PATTERNS:
        match = pattern.search(text)
        if match and match.group(1):
            return f"Cannot find module: {match.group(1)}"
    return DEPENDENCY_FALLBACK_DETAILS


def classify_failure(failure: BaseException) -> ComponentBuildError:
    """
    Classify an exception raised by a build attempt

    Compiler failures carry their diagnostic text; anything else is
    classified from its message. Failures without any text become an
    "unknown" error.
    """
    if isinstance(failure, CompilerInvocationError):
        return classify_build_error(failure.diagnostic)

    text = str(failure)
    if text:
        return classify_build_error(text)

    return ComponentBuildError(
        kind=ErrorKind.UNKNOWN,
        message="Unknown build error",
        details=repr(failure),
        raw_error=repr(failure),
    )


def format_user_friendly_error(error: ComponentBuildError) -> str:
    """Render a multi-line message shown to users when a build fails"""
    details = error.details or ""

    if error.kind == ErrorKind.SYNTAX:
        return f"Syntax error: {error.message}\n{details}"

    if error.kind == ErrorKind.DEPENDENCY:
        return (
            f"Dependency error: {error.message}\n{details}\n"
            "Check whether the code uses third-party libraries that are not installed; "
            "only React and Tailwind CSS classes are available"
        )

    if error.kind == ErrorKind.CONFIG:
        return (
            f"Configuration error: {error.message}\n{details}\n"
            "Please contact the system administrator"
        )

    return (
        f"Build failed: {error.message}\n{details}\n"
        "Check that the code follows React and TypeScript conventions"
    )


def log_build_error(page_id: str, error: ComponentBuildError) -> None:
    """Log a classified build error"""
    location = ""
    if error.file:
        location = f" at {error.file}:{error.line}:{error.column}"
    logger.error(
        f"[component_build_error] page_id={page_id} kind={error.kind.value} "
        f"message={error.message}{location} details={(error.details or '')[:500]}"
    )


__all__ = [
    "ErrorKind",
    "ComponentBuildError",
    "classify_build_error",
    "classify_failure",
    "format_user_friendly_error",
    "log_build_error",
]
