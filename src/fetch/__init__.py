"""Fetch collaborator for list timelines.

Provides:
- Rate-limit budget check before every list request
- Classification of transport and HTTP failures into FetchError
- Header redaction for logging
"""

from src.fetch.client import TwitterListFetcher
from src.fetch.config import FetchConfig
from src.fetch.redact import redact_headers


__all__ = [
    "FetchConfig",
    "TwitterListFetcher",
    "redact_headers",
]
