"""Constants for the configuration module."""

# Log component names
COMPONENT_CONFIG = "config"
COMPONENT_CLI = "cli"

# Category every headline falls into when no category rule matches
DEFAULT_CATEGORY = "News"
DEFAULT_BADGE = "default_badge"

# Default hard cap for the global and per-category feeds
DEFAULT_FEED_CAP = 20

# Default engine configuration file
DEFAULT_CONFIG_PATH = "config/headlines.yaml"

# Default directory for cached feed files
DEFAULT_CACHE_DIR = "headlines"
