"""Health check response schema."""

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Liveness plus database reachability. status is 'degraded' when the database is unreachable."""

    status: Literal["ok", "degraded"] = Field(default="ok", description="Overall service status")
    service: str = Field(default="warden", description="Service name")
    environment: str = Field(description="Current app environment (dev or prod)")
    version: str = Field(description="API version")
    database: Literal["connected", "disconnected"]
