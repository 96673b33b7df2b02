"""Constants for the headline engine."""

import re

from src.config.constants import DEFAULT_BADGE, DEFAULT_CATEGORY, DEFAULT_FEED_CAP


__all__ = [
    "AGE_FORWARD_FAVORITE_WEIGHT",
    "AGE_FORWARD_RETWEET_WEIGHT",
    "AMPERSAND_REPLACEMENT",
    "DEFAULT_BADGE",
    "DEFAULT_CATEGORY",
    "DEFAULT_FEED_CAP",
    "ESCAPED_AMPERSAND",
    "FRESHNESS_HORIZON_HOURS",
    "POST_TIMESTAMP_FORMAT",
    "REVERSE_AGE_FAVORITE_DIVISOR",
    "REVERSE_AGE_RETWEET_DIVISOR",
    "SECONDS_PER_HOUR",
    "URL_PATTERN",
]

# URLs are stripped from post bodies before they become descriptions
URL_PATTERN: re.Pattern[str] = re.compile(r"(?:https?|ftp)://[\n\S]+")

# Escaped ampersand as delivered by the upstream API
ESCAPED_AMPERSAND = "&amp;"
AMPERSAND_REPLACEMENT = "and"

# Upstream timestamp format, e.g. "Wed Oct 10 20:19:24 +0000 2018"
POST_TIMESTAMP_FORMAT = "%a %b %d %H:%M:%S %z %Y"

# Reverse-age scoring: posts older than this only keep engagement credit
FRESHNESS_HORIZON_HOURS = 200
REVERSE_AGE_RETWEET_DIVISOR = 10
REVERSE_AGE_FAVORITE_DIVISOR = 5

# Age-forward scoring weights
AGE_FORWARD_RETWEET_WEIGHT = 1.5
AGE_FORWARD_FAVORITE_WEIGHT = 1.0

SECONDS_PER_HOUR = 3600
