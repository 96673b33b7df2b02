"""Unit tests for FetchConfig."""

import pytest
from pydantic import ValidationError

from src.fetch.config import FetchConfig


class TestFetchConfig:
    """Tests for FetchConfig."""

    @pytest.mark.unit
    def test_defaults(self) -> None:
        """Defaults point at the public API and ask for full pages."""
        config = FetchConfig()

        assert config.base_url == "https://api.twitter.com/1.1"
        assert config.list_count == 200

    @pytest.mark.unit
    def test_url_for_strips_slashes(self) -> None:
        """Base and path are joined with a single slash."""
        config = FetchConfig(base_url="https://api.test/1.1/")
        assert config.url_for("/lists/statuses.json") == (
            "https://api.test/1.1/lists/statuses.json"
        )

    @pytest.mark.unit
    def test_rejects_non_http_url(self) -> None:
        """Only http(s) base URLs are accepted."""
        with pytest.raises(ValidationError):
            FetchConfig(base_url="ftp://api.test")

    @pytest.mark.unit
    def test_rejects_oversized_page(self) -> None:
        """The list endpoint returns at most 200 posts."""
        with pytest.raises(ValidationError):
            FetchConfig(list_count=201)
