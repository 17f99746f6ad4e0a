from typing import Optional, Dict, Any, List
from abc import ABC
import logging

logger = logging.getLogger(__name__)

EXIT_FAILURE = 1


class silentverifyError(Exception, ABC):
    """
    Root of every error raised by silentverify.

    Carries a stable ``error_code``, free-form ``context`` and user-facing
    ``suggestions``. ``exit_code`` is what the CLI exits with when the error
    reaches it; subclasses with their own exit path override it.
    """

    exit_code: int = EXIT_FAILURE

    def __init__(
        self,
        message: str,
        *,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self._get_default_error_code()
        self.context: Dict[str, Any] = dict(context or {})
        self.suggestions: List[str] = list(suggestions or [])

    def _get_default_error_code(self) -> str:
        return "SILENTVERIFY_ERROR"

    def add_context(self, key: str, value: Any) -> "silentverifyError":
        if key:
            self.context[key] = value
        return self

    def add_suggestion(self, suggestion: str) -> "silentverifyError":
        if suggestion and suggestion not in self.suggestions:
            self.suggestions.append(suggestion)
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Structured form for debug logs."""
        return {
            "errorCode": self.error_code,
            "message": self.message,
            "context": dict(self.context),
            "suggestions": list(self.suggestions),
            "exitCode": self.exit_code,
        }

    def _render(self, base: str) -> str:
        if self.suggestions:
            return f"{base} -- Suggestions: {'; '.join(self.suggestions)}"
        return base

    def __str__(self) -> str:
        return self._render(self.message or "")


class ConfigurationError(silentverifyError):
    """Bad settings, CLI arguments or policy files; ``config_field`` names the culprit."""

    def __init__(self, message: str, *, config_field: str | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.config_field = config_field
        if config_field:
            self.add_context('config_field', config_field)

    def _get_default_error_code(self) -> str:
        return "CONFIGURATION_ERROR"

    def __str__(self) -> str:
        base = self.message or ""
        if self.config_field:
            base = f"[{self.config_field}] {base}"
        return self._render(base)


class FileSystemError(silentverifyError):
    """A scan, policy or report file could not be read or written."""

    def __init__(self, message: str, *, path: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        if path:
            self.add_context('path', path)

    def _get_default_error_code(self) -> str:
        return "FILE_SYSTEM_ERROR"
