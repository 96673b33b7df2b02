"""HTTP and upstream API constants for the fetch collaborator."""

# HTTP Status Code Ranges
HTTP_STATUS_OK_MIN = 200
HTTP_STATUS_OK_MAX = 300
HTTP_STATUS_BAD_REQUEST = 400
HTTP_STATUS_TOO_MANY_REQUESTS = 429
HTTP_STATUS_SERVER_ERROR_MIN = 500
HTTP_STATUS_SERVER_ERROR_MAX = 600

# Response Size Limits
DEFAULT_MAX_RESPONSE_SIZE_BYTES = 10 * 1024 * 1024  # 10 MB

# Upstream API
DEFAULT_API_BASE_URL = "https://api.twitter.com/1.1"
RATE_LIMIT_STATUS_PATH = "application/rate_limit_status.json"
LIST_STATUSES_PATH = "lists/statuses.json"
RATE_LIMIT_RESOURCE_FAMILY = "lists"
LIST_STATUSES_RESOURCE = "/lists/statuses"

# Maximum page size accepted by lists/statuses
MAX_LIST_COUNT = 200
