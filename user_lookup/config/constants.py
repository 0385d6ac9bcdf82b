"""Configuration constants and defaults."""

# Section names
SECTION_FILES = "files"
SECTION_CACHE = "cache"
SECTION_LOGGING = "logging"

# Environment variable prefix, keys follow USER_LOOKUP_<SECTION>_<KEY>
ENV_PREFIX = "USER_LOOKUP_"

# Meta-configuration
ENV_USER_LOOKUP_CONFIG = "USER_LOOKUP_CONFIG"

DEFAULT_PASSWD_FILE = "/etc/passwd"
DEFAULT_GROUP_FILE = "/etc/group"
DEFAULT_CACHE_SECONDS = 0.0  # reload on every query
DEFAULT_MALFORMED_LINES = "skip"
DEFAULT_LOG_LEVEL = "WARNING"

SECTION_KEYS: dict[str, list[str]] = {
    SECTION_FILES: ["passwd", "group"],
    SECTION_CACHE: ["seconds", "malformed_lines"],
    SECTION_LOGGING: ["level"],
}
