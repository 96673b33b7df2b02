"""Error types for the pipeline and its collaborators."""

from collections.abc import Sequence
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from src.headlines.errors import HeadlineFeedError
from src.headlines.models import RateLimitSnapshot


class FetchErrorClass(str, Enum):
    """Classification of per-source fetch failures.

    - NETWORK_TIMEOUT: Connect or read timeout
    - CONNECTION_ERROR: DNS or connection failure
    - HTTP_4XX: Client error response (auth, missing list)
    - HTTP_5XX: Server error response
    - RATE_LIMITED: Rate-limit budget exhausted
    - INVALID_RESPONSE: Body could not be decoded as expected
    - UNKNOWN: Anything else raised by the collaborator
    """

    NETWORK_TIMEOUT = "NETWORK_TIMEOUT"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    HTTP_4XX = "HTTP_4XX"
    HTTP_5XX = "HTTP_5XX"
    RATE_LIMITED = "RATE_LIMITED"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    UNKNOWN = "UNKNOWN"


class FetchError(HeadlineFeedError):
    """Network, auth or rate-limit failure for one source.

    Always carries the rate-limit state observed while failing, which is
    unknown when it could not be read.
    """

    def __init__(
        self,
        source_id: str,
        message: str,
        error_class: FetchErrorClass = FetchErrorClass.UNKNOWN,
        rate_limit: RateLimitSnapshot | None = None,
        status_code: int | None = None,
    ) -> None:
        """Initialize the fetch error.

        Args:
            source_id: Identifier of the source that failed.
            message: Human-readable error message.
            error_class: Classification of the failure.
            rate_limit: Rate-limit snapshot observed during the failure.
            status_code: HTTP status code, if a response was received.
        """
        super().__init__(message)
        self.source_id = source_id
        self.message = message
        self.error_class = error_class
        self.rate_limit = rate_limit or RateLimitSnapshot.unknown()
        self.status_code = status_code

    def to_dict(self) -> dict[str, str | int | None]:
        """Convert error to dictionary for logging/serialization.

        Returns:
            Dictionary representation of the error.
        """
        return {
            "source_id": self.source_id,
            "error_class": self.error_class.value,
            "message": self.message,
            "status_code": self.status_code,
            "rate_limit_remaining": self.rate_limit.remaining,
            "rate_limit_limit": self.rate_limit.limit,
        }


class RateLimitExhaustedError(FetchError):
    """The rate-limit budget for a source is used up.

    The caller should back off before retrying the source.
    """

    def __init__(
        self,
        source_id: str,
        rate_limit: RateLimitSnapshot | None = None,
        message: str = "Rate limit exhausted",
    ) -> None:
        """Initialize the error.

        Args:
            source_id: Identifier of the source that was skipped.
            rate_limit: Snapshot showing the exhausted budget.
            message: Human-readable error message.
        """
        super().__init__(
            source_id=source_id,
            message=message,
            error_class=FetchErrorClass.RATE_LIMITED,
            rate_limit=rate_limit,
        )


class CacheError(HeadlineFeedError):
    """Cache read or write failure.

    Does not invalidate a feed that was already published in memory.
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        """Initialize the cache error.

        Args:
            message: Human-readable error message.
            path: File the operation failed on.
        """
        super().__init__(message)
        self.message = message
        self.path = path


class SourceWarning(BaseModel):
    """Record of one failed source, returned with a successful run."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    source_id: Annotated[str, Field(min_length=1)]
    error_class: FetchErrorClass
    message: str
    rate_limit: RateLimitSnapshot = Field(default_factory=RateLimitSnapshot)

    @classmethod
    def from_error(cls, error: FetchError) -> "SourceWarning":
        """Create a warning from a fetch error.

        Args:
            error: The failure to record.

        Returns:
            SourceWarning instance.
        """
        return cls(
            source_id=error.source_id,
            error_class=error.error_class,
            message=error.message,
            rate_limit=error.rate_limit,
        )


class PipelineFailedError(HeadlineFeedError):
    """No source produced data in a run.

    The previously published feed stays in place.
    """

    def __init__(self, warnings: Sequence[SourceWarning], run_id: str = "") -> None:
        """Initialize the error.

        Args:
            warnings: One warning per failed source.
            run_id: Identifier of the failed run.
        """
        self.warnings = list(warnings)
        self.run_id = run_id
        super().__init__(
            f"Pipeline run '{run_id}' failed: no source succeeded "
            f"({len(self.warnings)} failed)"
        )
