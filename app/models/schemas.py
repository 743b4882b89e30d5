from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class WelcomeResponse(BaseModel):
    message: str
    version: str
    timestamp: datetime


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"
    uptime: float = Field(ge=0)
    timestamp: datetime
