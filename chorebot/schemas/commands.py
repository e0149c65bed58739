# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Request / Response schemas for the chat gateway and read-only views.
These are Pydantic models used ONLY at the controller (HTTP) boundary.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field


# ── Inbound chat events ──

class MessageEvent(BaseModel):
    caller_id: str = Field(..., min_length=1, max_length=255, description="Platform caller id")
    display_name: str = Field(default="", max_length=255)
    text: str = Field(..., max_length=4096, description="Raw message text")


class ButtonEvent(BaseModel):
    caller_id: str = Field(..., min_length=1, max_length=255)
    display_name: str = Field(default="", max_length=255)
    token: str = Field(..., min_length=1, max_length=255, description="Button callback token")


class ButtonOut(BaseModel):
    label: str
    token: str


class ReplyResponse(BaseModel):
    handled: bool
    text: str = ""
    buttons: list[ButtonOut] = Field(default_factory=list)


# ── Read models ──

class RotationResponse(BaseModel):
    members: list[dict[str, Any]]
    current_index: int
    current: Optional[dict[str, Any]] = None
    owed_turns: dict[str, int]
    upcoming: list[str]


class PunishmentStatsResponse(BaseModel):
    total: int
    pending: int
    approved: int
    rejected: int
    adminCount: int
