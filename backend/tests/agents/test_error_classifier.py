"""
Tests for the Error Classifier

Raw bundler diagnostics are classified in a fixed order:
syntax → dependency → config → unknown.
"""
import logging

import pytest

from agents.core.error_classifier import (
    ComponentBuildError,
    ErrorKind,
    classify_build_error,
    classify_failure,
    format_user_friendly_error,
    log_build_error,
)
from errors import CompilerInvocationError


class TestClassifyBuildError:
    """Test suite for classify_build_error"""

    def test_syntax_error_uses_reason_line(self):
        raw = "ERROR in ./src/index.tsx\nSyntaxError: Unexpected token (12:4)\n    at parse"
        error = classify_build_error(raw)

        assert error.kind == ErrorKind.SYNTAX
        assert error.message == "Component source contains a syntax error"
        assert error.details == "Unexpected token (12:4)"
        assert error.raw_error == raw

    def test_unexpected_token_with_location(self):
        error = classify_build_error("src/index.tsx:5:10 Unexpected token")

        assert error.kind == ErrorKind.SYNTAX
        assert error.file == "src/index.tsx"
        assert error.line == 5
        assert error.column == 10
        assert error.details == "Syntax error in file src/index.tsx at line 5, column 10"

    def test_syntax_error_without_reason_or_location_keeps_raw_text(self):
        error = classify_build_error("Unexpected token somewhere")

        assert error.kind == ErrorKind.SYNTAX
        assert error.details == "Unexpected token somewhere"
        assert error.line is None

    def test_dependency_error_extracts_module_name(self):
        raw = "Module not found: Error: Can't resolve 'antd' in '/tmp/ws/src'"
        error = classify_build_error(raw)

        assert error.kind == ErrorKind.DEPENDENCY
        assert error.message == "Component dependency is missing"
        assert error.details == "Cannot find module: antd"

    def test_dependency_error_without_module_name(self):
        error = classify_build_error("Module not found somewhere")

        assert error.kind == ErrorKind.DEPENDENCY
        assert error.details == "Dependency resolution failed"

    def test_config_error(self):
        raw = "Invalid configuration object. Webpack has been initialized using a configuration object"
        error = classify_build_error(raw)

        assert error.kind == ErrorKind.CONFIG
        assert error.message == "Build configuration error"
        assert error.details == raw

    def test_unknown_error(self):
        error = classify_build_error("Killed")

        assert error.kind == ErrorKind.UNKNOWN
        assert error.message == "Component build failed"
        assert error.details == "Killed"

    def test_syntax_wins_over_dependency(self):
        """First matching check wins"""
        error = classify_build_error("SyntaxError: bad\nModule not found: Can't resolve 'x'")
        assert error.kind == ErrorKind.SYNTAX

    def test_dependency_wins_over_config(self):
        error = classify_build_error("Can't resolve 'lodash-es' (see webpack config)")
        assert error.kind == ErrorKind.DEPENDENCY
        assert error.details == "Cannot find module: lodash-es"

    def test_windows_line_endings_are_normalized(self):
        error = classify_build_error("SyntaxError: Missing semicolon\r\n  at line 3\r\n")
        assert error.details == "Missing semicolon"

    def test_classification_is_deterministic(self):
        raw = "Module not found: Error: Can't resolve './missing'"
        assert classify_build_error(raw) == classify_build_error(raw)


class TestClassifyFailure:
    """Test suite for classify_failure"""

    def test_uses_compiler_diagnostic(self):
        failure = CompilerInvocationError("SyntaxError: Unterminated string", returncode=2)
        error = classify_failure(failure)

        assert error.kind == ErrorKind.SYNTAX
        assert error.details == "Unterminated string"

    def test_uses_exception_message(self):
        error = classify_failure(RuntimeError("Build timeout after 300 seconds"))

        assert error.kind == ErrorKind.UNKNOWN
        assert "Build timeout" in error.details

    def test_exception_without_text_is_unknown(self):
        error = classify_failure(RuntimeError())

        assert error.kind == ErrorKind.UNKNOWN
        assert error.message == "Unknown build error"


class TestFormatUserFriendlyError:
    """Test suite for format_user_friendly_error"""

    @pytest.mark.parametrize("kind,label,hint", [
        (ErrorKind.SYNTAX, "Syntax error", None),
        (ErrorKind.DEPENDENCY, "Dependency error", "third-party libraries"),
        (ErrorKind.CONFIG, "Configuration error", "system administrator"),
        (ErrorKind.UNKNOWN, "Build failed", "React and TypeScript conventions"),
    ])
    def test_template_per_kind(self, kind, label, hint):
        error = ComponentBuildError(kind=kind, message="summary text", details="detail text")
        text = format_user_friendly_error(error)

        assert text.startswith(f"{label}: summary text")
        assert "detail text" in text
        if hint:
            assert hint in text

    def test_multi_line(self):
        error = classify_build_error("Module not found: Error: Can't resolve 'antd'")
        lines = format_user_friendly_error(error).splitlines()

        assert lines[0] == "Dependency error: Component dependency is missing"
        assert lines[1] == "Cannot find module: antd"
        assert len(lines) == 3


class TestLogBuildError:

    def test_logs_page_id_and_kind(self, caplog):
        error = classify_build_error("SyntaxError: oops")

        with caplog.at_level(logging.ERROR):
            log_build_error("page-1", error)

        assert "page-1" in caplog.text
        assert "syntax" in caplog.text
