"""Configuration model for the fetch collaborator."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.fetch.constants import (
    DEFAULT_API_BASE_URL,
    DEFAULT_MAX_RESPONSE_SIZE_BYTES,
    MAX_LIST_COUNT,
)


class FetchConfig(BaseModel):
    """Configuration for list fetching.

    Credentials are not part of this model; the bearer token comes from
    the environment.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    base_url: Annotated[str, Field(min_length=1)] = DEFAULT_API_BASE_URL
    user_agent: Annotated[str, Field(min_length=1, max_length=500)] = (
        "headline-feed/1.0"
    )
    timeout_seconds: Annotated[float, Field(ge=1.0, le=300.0)] = 30.0
    list_count: Annotated[int, Field(ge=1, le=MAX_LIST_COUNT)] = MAX_LIST_COUNT
    max_response_size_bytes: Annotated[int, Field(ge=1024, le=100 * 1024 * 1024)] = (
        DEFAULT_MAX_RESPONSE_SIZE_BYTES
    )

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Require an http(s) URL and drop any trailing slash."""
        if not v.startswith(("http://", "https://")):
            msg = "base_url must start with http:// or https://"
            raise ValueError(msg)
        return v.rstrip("/")

    def url_for(self, path: str) -> str:
        """Build an absolute API URL.

        Args:
            path: Path relative to the API base.

        Returns:
            Absolute URL.
        """
        return f"{self.base_url}/{path.lstrip('/')}"
