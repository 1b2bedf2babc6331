# vlogwheel/core/ledger.py

import logging
from datetime import datetime
from typing import Optional

from .clock import DayClock
from ..schemas.state import OFF_CYCLE_NOTE, MediaKind, Submission, WheelState

logger = logging.getLogger("vlogwheel.ledger")


class SubmissionLedger:
    def __init__(self, state: WheelState, clock: DayClock):
        self.state = state
        self.clock = clock

    def _next_submission_id(self, created_at: datetime) -> str:
        """
        "s" + 13桁ゼロ埋めのミリ秒。
        同じミリ秒や過去時刻で作られても、既存の最大値 +1 に繰り上げるので
        ID は一意かつ作成順にソートできる。
        """
        millis = int(created_at.timestamp() * 1000)
        if self.state.submissions:
            last = max(int(sid[1:]) for sid in self.state.submissions)
            millis = max(millis, last + 1)
        return f"s{millis:013d}"

    def record_submission(
        self,
        author_id: str,
        media_kind: MediaKind,
        ts: datetime,
    ) -> Submission:
        """
        メディア投稿を記録する（常に新しい Submission を作る）。
        - その日の Pick の担当者本人なら Pick に紐づける（on-cycle）
        - それ以外は note="off-cycle" で保存だけして、投票・streak の対象外
        """
        day_key = self.clock.day_key(ts)
        submission = Submission(
            id=self._next_submission_id(ts),
            author_id=author_id,
            media_kind=media_kind,
            created_at=ts,
        )

        pick = self.state.get_pick(day_key)
        if pick is not None and pick.member_id == author_id:
            pick.submission_ids.append(submission.id)
            logger.info("Submission %s bound to pick %s (%s)", submission.id, day_key, author_id)
        else:
            submission.note = OFF_CYCLE_NOTE
            logger.info("Off-cycle submission %s from %s on %s", submission.id, author_id, day_key)

        return self.state.add_submission(submission)

    def bind_announcement(self, submission_id: str, announcement_id: str) -> Submission:
        self.state.link_announcement(announcement_id, submission_id)
        return self.state.submissions[submission_id]

    def find_by_announcement(self, announcement_id: str) -> Optional[Submission]:
        return self.state.submission_for_announcement(announcement_id)

    def submissions_for_pick(self, day_key: str) -> list[Submission]:
        pick = self.state.get_pick(day_key)
        if pick is None:
            return []
        return [self.state.submissions[sid] for sid in pick.submission_ids if sid in self.state.submissions]

    def latest_for_pick(self, day_key: str) -> Optional[Submission]:
        subs = self.submissions_for_pick(day_key)
        return subs[-1] if subs else None
