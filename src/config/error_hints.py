"""Error hints for configuration validation errors.

Provides user-friendly hints with actionable remediation steps
for common validation errors.
"""

from typing import Final


# Mapping of error types to user-friendly hints
ERROR_HINTS: Final[dict[str, str]] = {
    "missing": "This field is required. Please add it to your configuration.",
    "enum": "Check the allowed values in the documentation.",
    "int_type": "This field must be an integer (whole number).",
    "int_parsing": "This field must be an integer (whole number).",
    "string_type": "This field must be a text string.",
    "bool_type": "This field must be true or false.",
    "list_type": "This field must be a list.",
    "model_type": "This section must be a mapping of keys to values.",
    "extra_forbidden": "Unknown key. Check the spelling against the documented keys.",
    "greater_than_equal": "The value is too small. Check the minimum allowed.",
    "less_than_equal": "The value is too large. Check the maximum allowed.",
    "too_short": "The list is empty. At least one entry is required.",
    "string_too_short": "The text is too short. Check minimum length requirement.",
    "string_too_long": "The text is too long. Check maximum length requirement.",
    "string_pattern_mismatch": "The format is invalid. Check the allowed characters.",
    "value_error": "Check the value format. Patterns must be valid regular expressions.",
    "file_not_found": "The file does not exist. Check the file path.",
    "yaml_parse_error": "Invalid YAML syntax. Check for proper indentation and formatting.",
}

# Field-specific hints for more context
FIELD_HINTS: Final[dict[str, str]] = {
    "owner_screen_name": "Use the list owner's handle without '@' (letters, digits, underscores).",
    "slug": "Use the list slug as it appears in the list URL (e.g., 'world-news').",
    "default": "Must be 'include all' or 'exclude all'.",
    "where": "Must be 'article_description' or 'source_name' ('source' is accepted).",
    "contains": "Must be a non-empty regular expression, matched case-insensitively.",
    "action": "Must be 'force include' or 'force exclude'.",
    "search_pattern": "Must be a non-empty regular expression, matched case-insensitively.",
    "category": "Must be a non-empty name without commas.",
    "badge": "Must be a non-empty badge label (e.g., 'politics_badge').",
    "sort": "Must be one of: top_score, latest, none (top20 and latest20 are accepted).",
    "cap": "Must be between 1 and 1000.",
    "strategy": "Must be 'reverse_age' or 'age_forward'.",
    "sources": "Must be a non-empty list of list sources.",
}


def get_error_hint(error_type: str, field_name: str | None = None) -> str:
    """Get a user-friendly hint for a validation error.

    Args:
        error_type: The Pydantic error type (e.g., 'missing', 'enum').
        field_name: Optional dotted field location for field-specific hints.

    Returns:
        A user-friendly hint string.
    """
    if field_name:
        # Walk the location backwards so 'sources.0.rules.custom.1.action' finds 'action'
        for part in reversed(field_name.split(".")):
            if part in FIELD_HINTS:
                return FIELD_HINTS[part]

    return ERROR_HINTS.get(
        error_type, "Check the configuration documentation for valid values."
    )


def format_validation_error(
    location: str,
    message: str,
    error_type: str,
    *,
    include_hint: bool = True,
) -> str:
    """Format a validation error with optional hint.

    Args:
        location: The error location (e.g., 'sources.0.slug').
        message: The original error message.
        error_type: The error type.
        include_hint: Whether to include a hint.

    Returns:
        Formatted error string.
    """
    base = f"{location}: {message}"
    if include_hint:
        hint = get_error_hint(error_type, location)
        return f"{base}\n    Hint: {hint}"
    return base
