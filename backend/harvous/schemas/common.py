"""
Harvous Backend - Shared Schema Pieces
=======================================

What:  The camelCase base model every API schema inherits from, plus the
       error and health payloads.
How:   ApiModel generates camelCase aliases (noteId, primaryReference) for the
       JSON side while Python code keeps snake_case attributes. Requests are
       accepted in either form (populate_by_name); FastAPI serializes
       responses by alias.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ErrorResponse(BaseModel):
    """
    Standardized error body for all API errors.

    Example:
        {
            "error": "parse_error",
            "message": "Unrecognized book 'Xyz'",
            "details": {"reference": "Xyz 1:1"},
            "request_id": "550e8400-e29b-41d4-a716-446655440000"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, degraded")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    bible_api: str = Field(description="Verse API circuit: available, recovering, circuit_open")
    uptime_seconds: float = Field(description="Seconds since service started")


class MessageResponse(ApiModel):
    success: bool = True
    message: str
