# vlogwheel/core/picks.py

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Protocol, Sequence, TypeVar

from .clock import DayClock
from .roster import RosterStore
from .streaks import OutcomeEffect
from .voting import VotingEngine
from ..errors import EmptyRosterError
from ..schemas.state import Member, Pick, RecordingMode, WheelState

logger = logging.getLogger("vlogwheel.picks")

T = TypeVar("T")


class RandomSource(Protocol):
    """random.Random 互換（choice だけ使う）。テストでは固定シードや固定値を渡す"""

    def choice(self, seq: Sequence[T]) -> T: ...


@dataclass
class CycleResult:
    day_key: str
    pick: Optional[Pick] = None
    created: bool = False
    effects: list[OutcomeEffect] = field(default_factory=list)
    skipped: Optional[str] = None


class PickCycleManager:
    """
    日付キーごとの担当者（Pick）の状態遷移。
    - run_daily_cycle: 毎日 day_start_hour:00 に呼ばれる（前日の締め + 今日の抽選）
    - manual_pick: オペレーターによる抽選のやり直し（前日の締めはしない）
    """

    def __init__(
        self,
        state: WheelState,
        clock: DayClock,
        roster: RosterStore,
        voting: VotingEngine,
        random_source: RandomSource,
    ):
        self.state = state
        self.clock = clock
        self.roster = roster
        self.voting = voting
        self.random_source = random_source

    def current_pick(self, now: datetime) -> Optional[Pick]:
        return self.state.get_pick(self.clock.today_key(now))

    def _draw(self) -> Member:
        members = self.roster.list()
        if not members:
            raise EmptyRosterError("No members to pick.")
        return self.random_source.choice(members)

    def finalize_previous_cycles(self, today_key: str, now: datetime) -> list[OutcomeEffect]:
        """
        今日より前の日付キーで作られた未確定の投稿（off-cycle 以外）をすべて強制確定する。
        通常は前日分だけだが、タイマーを取りこぼした日の分や、
        手動抽選で Pick から外れた投稿もここで拾う。
        """
        effects: list[OutcomeEffect] = []
        for sid in sorted(self.state.submissions):
            submission = self.state.submissions[sid]
            if submission.finalized or submission.off_cycle:
                continue
            if self.clock.day_key(submission.created_at) >= today_key:
                continue
            effect = self.voting.force_finalize(submission, now)
            if effect is not None:
                effects.append(effect)
        return effects

    def run_daily_cycle(self, now: datetime) -> CycleResult:
        today = self.clock.today_key(now)
        logger.info("Daily cycle for %s (previous %s)", today, self.clock.yesterday_key(now))

        result = CycleResult(day_key=today)
        result.effects = self.finalize_previous_cycles(today, now)

        existing = self.state.get_pick(today)
        if existing is not None:
            # 二重起動・起動時キャッチアップ: 同じ日付キーの担当者は変えない
            logger.info("Pick for %s already exists (%s); not redrawing", today, existing.member_id)
            result.pick = existing
            result.skipped = "already picked"
            return result

        try:
            member = self._draw()
        except EmptyRosterError as e:
            logger.warning("Skipping pick for %s: %s", today, e.message)
            result.skipped = "empty roster"
            return result

        result.pick = self.state.set_pick(today, Pick(member_id=member.id))
        result.created = True
        logger.info("Picked %s for %s", member.id, today)
        return result

    def manual_pick(self, now: datetime) -> tuple[str, Pick]:
        """
        手動抽選。その日の Pick を無条件で上書きする（後勝ち）。
        空のロスターでは EmptyRosterError。
        """
        today = self.clock.today_key(now)
        member = self._draw()
        pick = self.state.set_pick(today, Pick(member_id=member.id))
        logger.info("Manual pick %s for %s", member.id, today)
        return today, pick

    def choose_recording_mode(self, member_id: str, mode: RecordingMode, now: datetime) -> Optional[Pick]:
        """今日の担当者本人からの 'video' / 'voice' の返信だけを受け付ける"""
        pick = self.current_pick(now)
        if pick is None or pick.member_id != member_id:
            return None
        pick.recording_mode = mode
        return pick
