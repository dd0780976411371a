"""
Common schemas used across multiple endpoints.
"""
from pydantic import BaseModel, ConfigDict


class MessageResponse(BaseModel):
    """Simple message response."""
    message: str

    model_config = ConfigDict(json_schema_extra={"example": {"message": "Operation successful"}})


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    version: str = "1.0.0"
