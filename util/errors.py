# util/errors.py
from fastapi import HTTPException, status


class AppError(HTTPException):
    # Flow: raise AppError to short-circuit with a typed status & message.
    def __init__(
        self, message: str, http_status: int = status.HTTP_400_BAD_REQUEST
    ) -> None:
        super().__init__(status_code=http_status, detail=message)


class LeadFinderError(Exception):
    """Base for domain failures raised below the service layer."""


class InputValidationError(LeadFinderError):
    """Criteria are unusable (missing product/industry). Raised before any work."""


class EmbeddingProviderError(LeadFinderError):
    """The embedding collaborator failed, timed out or refused the call."""


class CircuitOpenError(EmbeddingProviderError):
    """The circuit breaker is OPEN; the provider is not called at all."""


class SearchDegradation(LeadFinderError):
    """
    Batch search could not use its shared window.
    Always caught inside the search engine, which falls back to sequential searches.
    """


class ScoringAnomaly(LeadFinderError):
    """One candidate could not be scored; it receives a fallback score."""

    def __init__(self, record_id: str, cause: BaseException) -> None:
        super().__init__(f"scoring failed for record {record_id}: {cause!r}")
        self.record_id = record_id
        self.cause = cause
