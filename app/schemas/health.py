"""Health check response."""

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: Literal["ok", "degraded"] = "ok"
    environment: str
    database: Literal["connected", "disconnected"]
    mail_transport: Literal["smtp", "log"] = Field(
        description="Outbound mail mode; 'log' keeps messages in memory instead of sending",
    )
    email_verification_required: bool
