"""Pydantic schemas for health check responses."""

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response body for the health check endpoint."""

    status: Literal["healthy"] = Field(default="healthy", description="Service status")
    service: str = Field(description="Service name reported to the gateway")
    storeConnected: bool = Field(
        description="Whether the account store connection is established",
    )
