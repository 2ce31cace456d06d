"""
Core Build Components

These components form the self-repairing build pipeline:
1. Error Classifier - Bundler diagnostic → ComponentBuildError
2. Repairer - ComponentBuildError + source → patched source
3. Builder - Source → UMD bundle, retrying through the repairer
"""
from .error_classifier import (
    ErrorKind,
    ComponentBuildError,
    classify_build_error,
    classify_failure,
    format_user_friendly_error,
    log_build_error,
)
from .repairer import RepairRequester
from .builder import (
    BuildRequest,
    CompileResult,
    CompilerRunner,
    WebpackRunner,
    ComponentBuilder,
)

__all__ = [
    "ErrorKind",
    "ComponentBuildError",
    "classify_build_error",
    "classify_failure",
    "format_user_friendly_error",
    "log_build_error",
    "RepairRequester",
    "BuildRequest",
    "CompileResult",
    "CompilerRunner",
    "WebpackRunner",
    "ComponentBuilder",
]
