# vlogwheel/schemas/status.py

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .state import RecordingMode


class MemberOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    display_name: str


class PickOut(BaseModel):
    day_key: str
    member_id: str
    display_name: str
    recording_mode: RecordingMode
    submission_ids: list[str]


class AdminOut(BaseModel):
    member_id: str
    display_name: str
    expires_at: datetime


class StatusOut(BaseModel):
    ok: bool = True
    members: int
    roster: list[MemberOut]
    today: str
    pick: Optional[PickOut] = None
    admin: Optional[AdminOut] = None


class LeaderboardItem(BaseModel):
    member_id: str
    display_name: str
    current_length: int
    last_credited_day_key: Optional[str] = None


class ConfigOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    day_start_hour: int
    channel_target: str


class ConfigUpdate(BaseModel):
    day_start_hour: Optional[int] = Field(None, ge=0, le=23)
    channel_target: Optional[str] = None


class CycleRunOut(BaseModel):
    day_key: str
    picked_member_id: Optional[str] = None
    created: bool
    finalized_submission_ids: list[str] = []
    detail: Optional[str] = None
