# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Domain models for the rotation engine. Plain pydantic, no FastAPI.

Field names are snake_case in Python and camelCase on the wire, so that
``EngineState.model_dump(mode="json", by_alias=True)`` is the persisted
snapshot format and ``EngineState.model_validate`` is its inverse.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RotationMember(CamelModel):
    """A single member of the chore rotation."""
    id: str = Field(..., min_length=1, max_length=255, description="Stable member id")
    display_name: str = Field(..., min_length=1, max_length=255)

    @field_validator("id", "display_name")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class RotationState(CamelModel):
    members: list[RotationMember] = Field(default_factory=list)
    current_index: int = Field(default=0, ge=0)
    # member id -> extra turns still owed from approved punishments
    owed_turns: dict[str, int] = Field(default_factory=dict)


class SwapRequest(CamelModel):
    id: int = Field(..., ge=1)
    requester: RotationMember
    target: RotationMember
    created_at: datetime


class SkipRequest(CamelModel):
    member: RotationMember
    requester_id: str
    reason: str = ""
    created_at: datetime


class PunishmentStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PunishmentRequest(CamelModel):
    id: int = Field(..., ge=1)
    submitter: str
    target_id: str
    target_display_name: str
    turns: int = Field(..., ge=1)
    reason: str
    status: PunishmentStatus = PunishmentStatus.PENDING
    submitted_at: datetime
    decided_by: Optional[str] = None
    decided_at: Optional[datetime] = None

    @property
    def is_pending(self) -> bool:
        return self.status == PunishmentStatus.PENDING


class EngineState(CamelModel):
    """The single owned aggregate holding every piece of engine state."""
    rotation: RotationState = Field(default_factory=RotationState)
    authorized_callers: list[str] = Field(default_factory=list)
    admins: list[str] = Field(default_factory=list)
    swap_requests: dict[int, SwapRequest] = Field(default_factory=dict)
    next_swap_id: int = Field(default=1, ge=1)
    punishment_requests: dict[int, PunishmentRequest] = Field(default_factory=dict)
    next_punishment_id: int = Field(default=1, ge=1)
    # member id -> pending skip request
    skip_requests: dict[str, SkipRequest] = Field(default_factory=dict)
    # caller id -> member id
    aliases: dict[str, str] = Field(default_factory=dict)
