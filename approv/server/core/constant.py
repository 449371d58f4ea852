"""Application-wide constants."""

PROJECT_NAME = "Approv"
SERVICE_NAME = "approv-api"
API_PREFIX = "/api"
VERSION = "1.0.0"
