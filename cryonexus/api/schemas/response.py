"""API response models."""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(..., description="Health status")
    version: str = Field(default="1.0.0", description="API version")


class ErrorResponse(BaseModel):
    """Body of every 4xx/5xx response."""

    error: str = Field(..., description="Human-readable error message")
