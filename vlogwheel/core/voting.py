# vlogwheel/core/voting.py

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .clock import DayClock
from .ledger import SubmissionLedger
from .streaks import OutcomeEffect, StreakTracker
from ..errors import AlreadyFinalizedError, UnresolvedVoteTargetError
from ..schemas.state import Outcome, Submission, WheelState

logger = logging.getLogger("vlogwheel.voting")


def decide(approvals: int, rejections: int, roster_size: int) -> Outcome:
    """
    承認/却下の判定（票を入れるたびに現在の集計から再計算する。状態は持たない）
    - 承認: A > R かつ A >= 1（単純多数で即決）
    - 却下: R > A かつ A + R >= max(1, M - 1)（ほぼ全員の投票が必要）
    - それ以外は継続
    """
    if approvals > rejections and approvals >= 1:
        return Outcome.APPROVED
    if rejections > approvals and approvals + rejections >= max(1, roster_size - 1):
        return Outcome.REJECTED
    return Outcome.OPEN


def decide_forced(approvals: int, rejections: int, roster_size: int) -> Outcome:
    """
    日付切り替え時の強制確定。
    - 票なし → 却下
    - 通常ルールで決まればそれ
    - 同票や定足数不足で決まらない場合も却下（提出日のサイクルを越えて開いたままにしない）
    """
    if approvals + rejections == 0:
        return Outcome.REJECTED
    outcome = decide(approvals, rejections, roster_size)
    return Outcome.REJECTED if outcome == Outcome.OPEN else outcome


@dataclass
class VoteResult:
    submission: Submission
    voter_id: str
    approve: bool
    outcome: Outcome
    effect: Optional[OutcomeEffect] = None


class VotingEngine:
    def __init__(
        self,
        state: WheelState,
        clock: DayClock,
        ledger: SubmissionLedger,
        streaks: StreakTracker,
    ):
        self.state = state
        self.clock = clock
        self.ledger = ledger
        self.streaks = streaks

    def roster_size(self) -> int:
        return len(self.state.members) or 1

    def resolve_target(self, now: datetime, quoted_message_id: Optional[str] = None) -> Submission:
        """
        投票先の決定:
        1. 引用されたアナウンス ID に紐づく投稿（優先）
        2. なければ今日の Pick の最新投稿
        """
        target: Optional[Submission] = None
        if quoted_message_id:
            target = self.ledger.find_by_announcement(quoted_message_id)
        if target is None:
            target = self.ledger.latest_for_pick(self.clock.day_key(now))

        if target is None or target.off_cycle:
            raise UnresolvedVoteTargetError("No submission found to vote on.")
        if target.finalized:
            raise AlreadyFinalizedError("Voting on this submission is closed.", submission_id=target.id)
        return target

    def cast_vote(
        self,
        voter_id: str,
        approve: bool,
        now: datetime,
        quoted_message_id: Optional[str] = None,
    ) -> VoteResult:
        submission = self.resolve_target(now, quoted_message_id)

        # 再投票は上書きし、投票順の末尾に移動する
        submission.votes.pop(voter_id, None)
        submission.votes[voter_id] = approve
        logger.info("Vote on %s by %s: %s", submission.id, voter_id, "approve" if approve else "reject")

        approvals, rejections = submission.tally()
        outcome = decide(approvals, rejections, self.roster_size())
        effect = None
        if outcome != Outcome.OPEN:
            effect = self.finalize(submission, outcome, now)

        return VoteResult(
            submission=submission,
            voter_id=voter_id,
            approve=approve,
            outcome=outcome,
            effect=effect,
        )

    def finalize(self, submission: Submission, outcome: Outcome, now: datetime) -> Optional[OutcomeEffect]:
        """一度だけ確定する。確定済みなら何もしない（None）"""
        if submission.finalized:
            return None
        if outcome == Outcome.OPEN:
            raise ValueError("cannot finalize with an open outcome")

        submission.outcome = outcome
        return self.streaks.apply_outcome(submission, outcome, now)

    def force_finalize(self, submission: Submission, now: datetime) -> Optional[OutcomeEffect]:
        if submission.finalized:
            return None
        approvals, rejections = submission.tally()
        outcome = decide_forced(approvals, rejections, self.roster_size())
        logger.info(
            "Force-finalizing %s (approve=%d reject=%d) -> %s",
            submission.id, approvals, rejections, outcome.value,
        )
        return self.finalize(submission, outcome, now)
