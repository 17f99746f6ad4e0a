"""Custom exceptions for the silentverify package."""

# Base exceptions
from .base import (
    EXIT_FAILURE,
    silentverifyError,
    ConfigurationError,
    FileSystemError,
)

# Processing exceptions
from .processing import (
    ProcessingError,
    ScoringError,
)

# Validation exceptions
from .validation import (
    ValidationError,
    FileValidationError,
    InputFileNotFoundError,
    InvalidInputFormatError,
    ParameterValidationError,
    PolicyValidationError,
    PolicyNotFoundError,
)

# Evidence exceptions
from .evidence import (
    EVIDENCE_VIOLATION,
    EVIDENCE_VIOLATION_EXIT_CODE,
    EvidenceViolationError,
    ConsistencyViolationError,
)

__all__ = [
    # Base
    "EXIT_FAILURE",
    "silentverifyError",
    "ConfigurationError",
    "FileSystemError",

    # Processing
    "ProcessingError",
    "ScoringError",

    # Validation
    "ValidationError",
    "FileValidationError",
    "InputFileNotFoundError",
    "InvalidInputFormatError",
    "ParameterValidationError",
    "PolicyValidationError",
    "PolicyNotFoundError",

    # Evidence
    "EVIDENCE_VIOLATION",
    "EVIDENCE_VIOLATION_EXIT_CODE",
    "EvidenceViolationError",
    "ConsistencyViolationError",
]
