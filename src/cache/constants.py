"""File names used by the cache collaborator."""

# Combined feed document
FEED_FILE_NAME = "headlines.json"

# Per-source headline snapshots: <slug>.headlines.json
SOURCE_FILE_SUFFIX = ".headlines.json"

JSON_INDENT = 2
