"""Pydantic schemas for health check responses."""

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Service status, environment and database reachability."""

    status: Literal["ok", "degraded"] = Field(default="ok", description="'degraded' when the database is unreachable")
    service: str = Field(default="gatehouse")
    version: str
    environment: str = Field(description="Current app environment (dev or prod)")
    database: Literal["connected", "disconnected"]
