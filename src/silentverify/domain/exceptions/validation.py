"""Input and policy validation exceptions."""

from typing import Optional, List, Any
from .base import silentverifyError, ConfigurationError

class ValidationError(silentverifyError):
    """Base class for validation errors."""

    def __init__(
        self,
        message: str,
        *,
        field_name: Optional[str] = None,
        field_value: Optional[Any] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        if field_name:
            self.add_context('field_name', field_name)
        if field_value is not None:
            self.add_context('field_value', str(field_value))

    def _get_default_error_code(self) -> str:
        return "VALIDATION_ERROR"


class FileValidationError(ValidationError):
    """Raised when an input file cannot be used."""

    def __init__(
        self,
        message: str,
        *,
        file_path: Optional[str] = None,
        validation_type: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        if file_path:
            self.add_context('file_path', file_path)
        if validation_type:
            self.add_context('validation_type', validation_type)

    def _get_default_error_code(self) -> str:
        return "FILE_VALIDATION_FAILED"


class InputFileNotFoundError(FileValidationError):
    """Raised when a findings or run file doesn't exist."""
    def __init__(self, file_path: str, **kwargs):
        message = f"File not found: {file_path}"
        super().__init__(message, file_path=file_path, validation_type="existence_check", **kwargs)
        self.add_suggestion("Check if the file path is correct and accessible")

    def _get_default_error_code(self) -> str:
        return "FILE_NOT_FOUND"


class InvalidInputFormatError(FileValidationError):
    """Raised when an input file is not the expected JSON shape."""
    def __init__(
        self,
        file_path: str,
        reason: str,
        expected_keys: Optional[List[str]] = None,
        **kwargs
    ):
        message = f"Invalid input file {file_path}: {reason}"
        super().__init__(message, file_path=file_path, validation_type="format_check", **kwargs)
        if expected_keys:
            self.add_context('expected_keys', expected_keys)
            self.add_suggestion(f"Provide a JSON object with: {', '.join(expected_keys)}")

    def _get_default_error_code(self) -> str:
        return "INVALID_INPUT_FORMAT"


class ParameterValidationError(ValidationError):
    """Raised when a parameter passed to the engine is not usable."""
    def __init__(
        self,
        parameter_name: str,
        parameter_value: Any,
        expected_type: Optional[str] = None,
        **kwargs
    ):
        message = f"Invalid parameter '{parameter_name}': {parameter_value}"
        super().__init__(message, field_name=parameter_name, field_value=str(parameter_value), **kwargs)
        if expected_type:
            self.add_context('expected_type', expected_type)
        self.add_suggestion(f"Check the value and type of parameter '{parameter_name}'")

    def _get_default_error_code(self) -> str:
        return "PARAMETER_VALIDATION_FAILED"


class PolicyValidationError(ConfigurationError):
    """Raised when a confidence policy file fails schema validation."""

    def __init__(
        self,
        message: str,
        *,
        policy_path: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        if policy_path:
            self.add_context('policy_path', policy_path)

    def _get_default_error_code(self) -> str:
        return "POLICY_INVALID"


class PolicyNotFoundError(PolicyValidationError):
    """Raised when an explicitly requested policy file is missing."""

    def __init__(self, policy_path: str, **kwargs):
        super().__init__(
            f"Confidence policy file not found: {policy_path}",
            policy_path=policy_path,
            config_field="policy.policy_path",
            **kwargs
        )
        self.add_suggestion("Check --policy and --project-dir, or omit --policy to use the built-in policy")

    def _get_default_error_code(self) -> str:
        return "POLICY_NOT_FOUND"
