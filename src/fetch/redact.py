"""Header redaction utilities for logging."""

# Headers that must never appear in logs
SENSITIVE_HEADERS = frozenset(
    {
        "authorization",
        "cookie",
        "proxy-authorization",
        "set-cookie",
    }
)

REDACTED_VALUE = "[REDACTED]"


def redact_headers(headers: dict[str, str]) -> dict[str, str]:
    """Redact sensitive headers for logging.

    Args:
        headers: Original headers dictionary.

    Returns:
        New dictionary with the bearer token and cookies redacted.
    """
    return {
        key: REDACTED_VALUE if key.lower() in SENSITIVE_HEADERS else value
        for key, value in headers.items()
    }
