"""
Exception hierarchy shared by the agents, services and routers
"""
from typing import Optional


class PageForgeError(Exception):
    """Base class for all Page Forge errors"""
    pass


class ModelClientError(PageForgeError):
    """Raised when a model call fails or returns nothing usable"""
    pass


class RepairError(PageForgeError):
    """Raised when a model-assisted repair does not yield usable source"""
    pass


class CompilerInvocationError(PageForgeError):
    """One bundler invocation failed; carries the raw diagnostic text"""

    def __init__(self, diagnostic: str, returncode: Optional[int] = None):
        super().__init__(diagnostic)
        self.diagnostic = diagnostic
        self.returncode = returncode


class ComponentBuildFailed(PageForgeError):
    """
    Raised by the build orchestrator once its retry budget is exhausted.

    The message is the user friendly text; ``error`` holds the classification.
    """

    def __init__(self, message: str, error=None):
        super().__init__(message)
        self.error = error


class PageNotFoundError(PageForgeError):
    """Raised when a page (or one of its files) does not exist"""
    pass


class PersistenceError(PageForgeError):
    """Raised when the page store cannot read or write a page"""
    pass


class InvalidPageIdError(PageForgeError):
    """Raised for page ids that are not safe to use as directory names"""
    pass


class GenerationInProgressError(PageForgeError):
    """Raised when a generation job for the same page is still running"""
    pass
