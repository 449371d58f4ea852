"""
API Schemas.

Pydantic models used for API request bodies and response validation, one
module per resource. These schemas define the interface contract between the
frontend and the server.
"""

from .common import ApiModel, ApiResponse, MessageData, Page

__all__ = ["ApiModel", "ApiResponse", "MessageData", "Page"]
