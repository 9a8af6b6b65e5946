"""Server-wide constants."""

PROJECT_NAME = "PromptAtrium"
API_PREFIX = "/api"
API_VERSION = "1.0.0"
SCHEMA_VERSION = "v1"

USER_ID_HEADER = "X-User-Id"
