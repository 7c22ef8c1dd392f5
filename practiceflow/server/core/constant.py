"""Server-wide constants."""

PROJECT_NAME = "PracticeFlow"
API_V1_STR = "/api/v1"
API_VERSION = "0.1.0"
SCHEMA_VERSION = "v1"

# Requests slower than this are logged as warnings
SLOW_REQUEST_MS = 1000
