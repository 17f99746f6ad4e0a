"""Batch scoring exceptions."""

from typing import Optional
from .base import silentverifyError

class ProcessingError(silentverifyError):
    """Base class for batch scoring errors."""

    def __init__(
        self,
        message: str,
        *,
        stage: Optional[str] = None,
        finding_id: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        if stage:
            self.add_context('processing_stage', stage)
        if finding_id:
            self.add_context('finding_id', finding_id)


class ScoringError(ProcessingError):
    """Raised when a single finding cannot be scored."""

    def __init__(
        self,
        message: str,
        *,
        finding_index: Optional[int] = None,
        **kwargs
    ):
        super().__init__(message, stage="scoring", **kwargs)
        if finding_index is not None:
            self.add_context('finding_index', finding_index)
        self.add_suggestion("Check that each finding is a JSON object with a findingType")

    def _get_default_error_code(self) -> str:
        return "FINDING_SCORING_FAILED"
