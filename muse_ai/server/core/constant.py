"""Server constants."""

PROJECT_NAME = "MUSE Story Service"
API_V1_STR = "/api/v1"
