# vlogwheel/core/streaks.py

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from .clock import DayClock, next_day_key
from ..schemas.state import AdminAssignment, Outcome, Streak, Submission, WheelState

logger = logging.getLogger("vlogwheel.streaks")


@dataclass
class OutcomeEffect:
    """確定した投稿が streak / admin に与えた影響（通知文の組み立て用）"""
    submission_id: str
    author_id: str
    outcome: Outcome
    streak_length: int
    admin: Optional[AdminAssignment] = None


def decisive_rejecting_voter(submission: Submission) -> Optional[str]:
    """投票順で最後の却下票の投票者。いなければ None"""
    for voter_id, approve in reversed(list(submission.votes.items())):
        if approve is False:
            return voter_id
    return None


class StreakTracker:
    def __init__(self, state: WheelState, clock: DayClock, admin_term_days: int = 7):
        self.state = state
        self.clock = clock
        self.admin_term = timedelta(days=admin_term_days)

    def apply_outcome(self, submission: Submission, outcome: Outcome, now: datetime) -> OutcomeEffect:
        """
        1投稿につき1回だけ呼ばれる（VotingEngine.finalize が finalized で保護している）。
        """
        if outcome == Outcome.APPROVED:
            streak = self._credit(submission)
            logger.info(
                "Approved %s: %s streak=%d",
                submission.id, submission.author_id, streak.current_length,
            )
            return OutcomeEffect(
                submission_id=submission.id,
                author_id=submission.author_id,
                outcome=outcome,
                streak_length=streak.current_length,
            )

        if outcome == Outcome.REJECTED:
            prev = self.state.get_streak(submission.author_id)
            # last_credited_day_key は監査用に残す
            self.state.set_streak(
                submission.author_id,
                Streak(current_length=0, last_credited_day_key=prev.last_credited_day_key),
            )

            assignment = None
            voter_id = decisive_rejecting_voter(submission)
            if voter_id is not None:
                assignment = AdminAssignment(member_id=voter_id, expires_at=now + self.admin_term)
                self.state.set_admin(assignment)
                logger.info("Rejected %s: admin -> %s until %s", submission.id, voter_id, assignment.expires_at)
            else:
                logger.info("Rejected %s: no rejecting voter, admin unchanged", submission.id)

            return OutcomeEffect(
                submission_id=submission.id,
                author_id=submission.author_id,
                outcome=outcome,
                streak_length=0,
                admin=assignment,
            )

        raise ValueError("cannot apply an open outcome")

    def _credit(self, submission: Submission) -> Streak:
        d = self.clock.day_key(submission.created_at)
        prev = self.state.get_streak(submission.author_id)
        last = prev.last_credited_day_key

        if last is not None and next_day_key(last) == d:
            new = Streak(current_length=prev.current_length + 1, last_credited_day_key=d)
        elif last == d:
            # 同じ日に2本目が承認されても減らさない（却下後の再提出なら 1 に戻す）
            new = Streak(current_length=max(prev.current_length, 1), last_credited_day_key=d)
        elif last is not None and last > d:
            # 後日の分がすでに加算済み（古い投稿の遅れた確定）→ 変更なし
            return prev
        else:
            new = Streak(current_length=1, last_credited_day_key=d)

        return self.state.set_streak(submission.author_id, new)

    def active_admin(self, now: datetime) -> Optional[AdminAssignment]:
        """期限はクエリ時に判定する（期限切れジョブは不要）"""
        admin = self.state.admin
        if admin is None or admin.expires_at <= now:
            return None
        return admin

    def leaderboard(self, limit: int = 10) -> list[tuple[str, Streak]]:
        items = sorted(
            self.state.streaks.items(),
            key=lambda kv: kv[1].current_length,
            reverse=True,
        )
        return items[:limit]
