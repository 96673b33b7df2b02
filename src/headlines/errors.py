"""Base error types for the headline engine."""


class HeadlineFeedError(Exception):
    """Base exception for all headline feed errors."""


class MalformedInputError(HeadlineFeedError):
    """Raised when a raw post payload has no usable structure at all.

    Missing nested fields are not an error; they default to empty values.
    This is raised only when the payload itself is not a mapping.
    """

    def __init__(self, message: str, source_id: str | None = None) -> None:
        """Initialize the error.

        Args:
            message: Human-readable error message.
            source_id: Identifier of the source that delivered the payload.
        """
        super().__init__(message)
        self.message = message
        self.source_id = source_id
