"""Twitter list fetch collaborator over httpx."""

import time
from collections.abc import Mapping
from typing import Any

import httpx
import structlog

from src.config.schemas.sources import SourceConfig
from src.fetch.config import FetchConfig
from src.fetch.constants import (
    HTTP_STATUS_BAD_REQUEST,
    HTTP_STATUS_OK_MAX,
    HTTP_STATUS_OK_MIN,
    HTTP_STATUS_SERVER_ERROR_MAX,
    HTTP_STATUS_SERVER_ERROR_MIN,
    HTTP_STATUS_TOO_MANY_REQUESTS,
    LIST_STATUSES_PATH,
    LIST_STATUSES_RESOURCE,
    RATE_LIMIT_RESOURCE_FAMILY,
    RATE_LIMIT_STATUS_PATH,
)
from src.fetch.redact import redact_headers
from src.headlines.models import RateLimitSnapshot, SourceFetchResult
from src.pipeline.errors import FetchError, FetchErrorClass, RateLimitExhaustedError


logger = structlog.get_logger()

# Identifier used for errors raised outside of a source fetch
RATE_LIMIT_QUERY_ID = "rate_limit_status"


class TwitterListFetcher:
    """Fetches list timelines after checking the rate-limit budget.

    Every source fetch first reads the rate-limit status of the list
    timeline resource. When the budget is used up the list is not
    requested and RateLimitExhaustedError is raised instead. Any failure
    is raised as FetchError carrying the last known snapshot.

    Safe to share between threads: each call opens its own client.
    """

    def __init__(
        self,
        bearer_token: str,
        config: FetchConfig | None = None,
        run_id: str = "",
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            bearer_token: Application bearer token.
            config: Fetch configuration.
            run_id: Unique run identifier for logging.
            transport: Optional httpx transport (used by tests).
        """
        self._bearer_token = bearer_token
        self._config = config or FetchConfig()
        self._transport = transport
        self._log = logger.bind(component="fetch", run_id=run_id)

    def fetch_source(self, source: SourceConfig) -> SourceFetchResult:
        """Fetch the posts of one list source.

        Args:
            source: Source to fetch.

        Returns:
            Decoded status objects and the rate-limit snapshot.

        Raises:
            RateLimitExhaustedError: If no requests remain for list timelines.
            FetchError: If the rate-limit status or the list cannot be read.
        """
        start_time_ns = time.perf_counter_ns()
        log = self._log.bind(source_id=source.id)

        with self._client() as client:
            snapshot = self._read_rate_limit(client, source.id)
            if snapshot.is_exhausted:
                log.warning(
                    "rate_limit_exhausted",
                    remaining=snapshot.remaining,
                    limit=snapshot.limit,
                )
                raise RateLimitExhaustedError(source.id, rate_limit=snapshot)

            params = {
                "owner_screen_name": source.owner_screen_name,
                "slug": source.slug,
                "count": str(self._config.list_count),
            }
            body = self._get_json(
                client, LIST_STATUSES_PATH, params, source.id, snapshot
            )

        if not isinstance(body, list):
            msg = f"Expected a list of statuses, got {type(body).__name__}"
            raise FetchError(
                source_id=source.id,
                message=msg,
                error_class=FetchErrorClass.INVALID_RESPONSE,
                rate_limit=snapshot,
            )

        duration_ms = (time.perf_counter_ns() - start_time_ns) / 1_000_000
        log.info(
            "fetch_complete",
            posts=len(body),
            remaining=snapshot.remaining,
            limit=snapshot.limit,
            duration_ms=round(duration_ms, 2),
        )
        return SourceFetchResult(posts=body, rate_limit=snapshot)

    def get_rate_limit(self) -> RateLimitSnapshot:
        """Read the current list timeline rate-limit snapshot.

        Returns:
            Snapshot, unknown when the status cannot be read.
        """
        try:
            with self._client() as client:
                return self._read_rate_limit(client, RATE_LIMIT_QUERY_ID)
        except FetchError as e:
            self._log.warning(
                "rate_limit_unavailable",
                error_class=e.error_class.value,
                error=e.message,
            )
            return RateLimitSnapshot.unknown()

    def _client(self) -> httpx.Client:
        headers = {
            "Authorization": f"Bearer {self._bearer_token}",
            "User-Agent": self._config.user_agent,
            "Accept": "application/json",
        }
        self._log.debug("client_opened", headers=redact_headers(headers))
        return httpx.Client(
            headers=headers,
            timeout=self._config.timeout_seconds,
            follow_redirects=True,
            transport=self._transport,
        )

    def _read_rate_limit(
        self, client: httpx.Client, source_id: str
    ) -> RateLimitSnapshot:
        """Read the rate-limit snapshot for list timelines.

        Raises:
            FetchError: If the status cannot be read or has no entry for
                list timelines. The attached snapshot is unknown.
        """
        body = self._get_json(
            client,
            RATE_LIMIT_STATUS_PATH,
            {"resources": RATE_LIMIT_RESOURCE_FAMILY},
            source_id,
            RateLimitSnapshot.unknown(),
        )
        entry = _nested_mapping(
            body, "resources", RATE_LIMIT_RESOURCE_FAMILY, LIST_STATUSES_RESOURCE
        )
        remaining = entry.get("remaining") if entry is not None else None
        limit = entry.get("limit") if entry is not None else None
        if not isinstance(remaining, int) or not isinstance(limit, int):
            raise FetchError(
                source_id=source_id,
                message=f"Rate-limit status has no entry for {LIST_STATUSES_RESOURCE}",
                error_class=FetchErrorClass.INVALID_RESPONSE,
            )
        return RateLimitSnapshot(remaining=remaining, limit=limit)

    def _get_json(
        self,
        client: httpx.Client,
        path: str,
        params: dict[str, str],
        source_id: str,
        rate_limit: RateLimitSnapshot,
    ) -> Any:
        """GET a JSON document, mapping every failure to FetchError."""
        url = self._config.url_for(path)
        try:
            response = client.get(url, params=params)
        except httpx.TimeoutException as e:
            raise FetchError(
                source_id=source_id,
                message=f"Request timed out: {e}",
                error_class=FetchErrorClass.NETWORK_TIMEOUT,
                rate_limit=rate_limit,
            ) from e
        except httpx.ConnectError as e:
            raise FetchError(
                source_id=source_id,
                message=f"Connection failed: {e}",
                error_class=FetchErrorClass.CONNECTION_ERROR,
                rate_limit=rate_limit,
            ) from e
        except httpx.HTTPError as e:
            raise FetchError(
                source_id=source_id,
                message=f"Unexpected error: {e}",
                error_class=FetchErrorClass.UNKNOWN,
                rate_limit=rate_limit,
            ) from e

        self._raise_for_status(response, source_id, rate_limit)

        if len(response.content) > self._config.max_response_size_bytes:
            raise FetchError(
                source_id=source_id,
                message=(
                    f"Response size {len(response.content)} exceeds limit "
                    f"{self._config.max_response_size_bytes}"
                ),
                error_class=FetchErrorClass.INVALID_RESPONSE,
                rate_limit=rate_limit,
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise FetchError(
                source_id=source_id,
                message=f"Response is not valid JSON: {e}",
                error_class=FetchErrorClass.INVALID_RESPONSE,
                rate_limit=rate_limit,
                status_code=response.status_code,
            ) from e

    def _raise_for_status(
        self,
        response: httpx.Response,
        source_id: str,
        rate_limit: RateLimitSnapshot,
    ) -> None:
        """Classify an HTTP status code as error.

        Raises:
            RateLimitExhaustedError: On 429 Too Many Requests.
            FetchError: On any other non-2xx status.
        """
        status_code = response.status_code
        if HTTP_STATUS_OK_MIN <= status_code < HTTP_STATUS_OK_MAX:
            return

        if status_code == HTTP_STATUS_TOO_MANY_REQUESTS:
            raise RateLimitExhaustedError(
                source_id,
                rate_limit=rate_limit,
                message="Rate limited (429 Too Many Requests)",
            )

        if HTTP_STATUS_BAD_REQUEST <= status_code < HTTP_STATUS_SERVER_ERROR_MIN:
            error_class = FetchErrorClass.HTTP_4XX
            message = f"Client error ({status_code})"
        elif HTTP_STATUS_SERVER_ERROR_MIN <= status_code < HTTP_STATUS_SERVER_ERROR_MAX:
            error_class = FetchErrorClass.HTTP_5XX
            message = f"Server error ({status_code})"
        else:
            error_class = FetchErrorClass.UNKNOWN
            message = f"Unexpected status ({status_code})"

        raise FetchError(
            source_id=source_id,
            message=message,
            error_class=error_class,
            rate_limit=rate_limit,
            status_code=status_code,
        )


def _nested_mapping(value: Any, *keys: str) -> Mapping[str, Any] | None:
    for key in keys:
        if not isinstance(value, Mapping):
            return None
        value = value.get(key)
    return value if isinstance(value, Mapping) else None
