# vlogwheel/schemas/state.py

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, PrivateAttr, computed_field


class MediaKind(str, Enum):
    VIDEO = "video"
    VOICE = "voice"


class RecordingMode(str, Enum):
    UNSET = "unset"
    VIDEO = "video"
    VOICE = "voice"


class Outcome(str, Enum):
    OPEN = "open"
    APPROVED = "approved"
    REJECTED = "rejected"


OFF_CYCLE_NOTE = "off-cycle"


class Member(BaseModel):
    id: str
    display_name: str


class WheelConfig(BaseModel):
    day_start_hour: int = Field(5, ge=0, le=23)
    channel_target: str = ""


class Pick(BaseModel):
    member_id: str
    submission_ids: list[str] = Field(default_factory=list)
    recording_mode: RecordingMode = RecordingMode.UNSET


class Submission(BaseModel):
    id: str
    author_id: str
    media_kind: MediaKind
    created_at: datetime
    # voter_id -> True(承認) / False(却下)。挿入順 = 投票順
    votes: dict[str, bool] = Field(default_factory=dict)
    outcome: Outcome = Outcome.OPEN
    bound_announcement_id: Optional[str] = None
    note: Optional[str] = None

    @computed_field  # type: ignore[misc]
    @property
    def finalized(self) -> bool:
        return self.outcome != Outcome.OPEN

    @property
    def off_cycle(self) -> bool:
        return self.note == OFF_CYCLE_NOTE

    def tally(self) -> tuple[int, int]:
        """(承認数, 却下数) を返す"""
        approvals = sum(1 for v in self.votes.values() if v)
        return approvals, len(self.votes) - approvals


class Streak(BaseModel):
    current_length: int = Field(0, ge=0)
    last_credited_day_key: Optional[str] = None


class AdminAssignment(BaseModel):
    member_id: str
    expires_at: datetime


class WheelState(BaseModel):
    """
    永続化される状態のすべて。
    JSON 文書としては config / members / picks / submissions / streaks / admin の6キー。
    各コンポーネントはこのオブジェクトを参照で受け取り、下のアクセサ経由で更新する。
    """

    config: WheelConfig = Field(default_factory=WheelConfig)
    members: dict[str, Member] = Field(default_factory=dict)
    picks: dict[str, Pick] = Field(default_factory=dict)
    submissions: dict[str, Submission] = Field(default_factory=dict)
    streaks: dict[str, Streak] = Field(default_factory=dict)
    admin: Optional[AdminAssignment] = None

    # アナウンス ID -> submission ID（永続化しない。ロード時に再構築）
    _announcements: dict[str, str] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context) -> None:
        self._announcements = {
            s.bound_announcement_id: s.id
            for s in self.submissions.values()
            if s.bound_announcement_id
        }

    # --- members ---

    def upsert_member(self, member: Member) -> Member:
        self.members[member.id] = member
        return member

    def get_member(self, member_id: str) -> Optional[Member]:
        return self.members.get(member_id)

    # --- picks ---

    def get_pick(self, day_key: str) -> Optional[Pick]:
        return self.picks.get(day_key)

    def set_pick(self, day_key: str, pick: Pick) -> Pick:
        self.picks[day_key] = pick
        return pick

    # --- submissions ---

    def get_submission(self, submission_id: str) -> Optional[Submission]:
        return self.submissions.get(submission_id)

    def add_submission(self, submission: Submission) -> Submission:
        self.submissions[submission.id] = submission
        return submission

    def link_announcement(self, announcement_id: str, submission_id: str) -> None:
        submission = self.submissions[submission_id]
        if submission.bound_announcement_id:
            self._announcements.pop(submission.bound_announcement_id, None)
        submission.bound_announcement_id = announcement_id
        self._announcements[announcement_id] = submission_id

    def submission_for_announcement(self, announcement_id: str) -> Optional[Submission]:
        submission_id = self._announcements.get(announcement_id)
        if submission_id is None:
            return None
        return self.submissions.get(submission_id)

    # --- streaks / admin ---

    def get_streak(self, member_id: str) -> Streak:
        return self.streaks.get(member_id) or Streak()

    def set_streak(self, member_id: str, streak: Streak) -> Streak:
        self.streaks[member_id] = streak
        return streak

    def set_admin(self, assignment: Optional[AdminAssignment]) -> None:
        self.admin = assignment
