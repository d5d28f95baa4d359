"""Response models for the system routes."""

from __future__ import annotations

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = "ok"
    telegram_enabled: bool


class MatchmakingStats(BaseModel):
    """Row counts by status, for troubleshooting. No identifiers or content."""

    participants: dict[str, int] = Field(default_factory=dict)
    queued_messages: dict[str, int] = Field(default_factory=dict)
