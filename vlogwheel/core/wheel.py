# vlogwheel/core/wheel.py

import logging
import random
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Sequence

from .channel import MessageChannel
from .clock import DayClock
from .commands import MODE_WORDS, ParsedCommand, parse_command
from .ledger import SubmissionLedger
from .picks import CycleResult, PickCycleManager, RandomSource
from .roster import RosterStore
from .store import StateStore
from .streaks import OutcomeEffect, StreakTracker
from .voting import VotingEngine
from ..config import Settings, settings
from ..errors import (
    AlreadyFinalizedError,
    EmptyRosterError,
    NotificationDeliveryError,
    PersistenceError,
    RosterUnavailableError,
    UnresolvedVoteTargetError,
)
from ..schemas.message import InboundMessage, MessageResult
from ..schemas.state import Outcome, Pick, WheelConfig, WheelState

logger = logging.getLogger("vlogwheel.wheel")

NOT_SAVED_WARNING = "[BOT] Warning: the last action may not have been saved."


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Wheel:
    """
    ホイール全体のサービス。

    - 受信メッセージ・日次タイマー・オペレーター操作の入口はすべてここ
    - 1つのロックで直列化する（ハンドラは最後まで走り切ってから次へ）
    - 状態を変える操作は、通知より先にスナップショットを保存する
    - 通知は送りっぱなし（失敗はログのみ、状態は巻き戻さない）
    """

    def __init__(
        self,
        store: StateStore,
        channel: MessageChannel,
        *,
        settings_obj: Optional[Settings] = None,
        random_source: Optional[RandomSource] = None,
        now_fn: Optional[Callable[[], datetime]] = None,
        state: Optional[WheelState] = None,
    ):
        self.settings = settings_obj or settings
        self.store = store
        self.channel = channel
        self.random_source = random_source or random.Random()
        self._now_fn = now_fn or _utcnow
        self._lock = threading.RLock()

        if state is None:
            state = store.load(
                WheelConfig(
                    day_start_hour=self.settings.DAY_START_HOUR,
                    channel_target=self.settings.GROUP_ID,
                )
            )
        self.state = state
        self._build_components()

    def _build_components(self) -> None:
        self.clock = DayClock(self.state.config.day_start_hour, self.settings.TIMEZONE)
        self.roster = RosterStore(self.state)
        self.ledger = SubmissionLedger(self.state, self.clock)
        self.streaks = StreakTracker(self.state, self.clock, self.settings.ADMIN_TERM_DAYS)
        self.voting = VotingEngine(self.state, self.clock, self.ledger, self.streaks)
        self.picks = PickCycleManager(self.state, self.clock, self.roster, self.voting, self.random_source)

    # -----------------------------
    # 共通ヘルパー
    # -----------------------------

    def now(self) -> datetime:
        return self._now_fn()

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def commit(self) -> None:
        """スナップショットを保存する。失敗すると PersistenceError"""
        self.store.save(self.state)

    def name(self, member_id: str) -> str:
        return self.roster.display_name(member_id)

    def _broadcast_target(self, fallback: str = "") -> str:
        return self.state.config.channel_target or fallback

    def _notify(self, target_id: str, text: str, mentions: Sequence[str] = ()) -> Optional[str]:
        """送信してアナウンス ID を返す。失敗したら None（ログのみ）"""
        if not target_id:
            logger.warning("No target for notification: %s", text)
            return None
        try:
            return self.channel.send(target_id, text, mentions)
        except NotificationDeliveryError as e:
            logger.warning("Notification to %s failed: %s", target_id, e.message)
            return None

    def _reply(self, result: MessageResult, chat_id: str, text: str, mentions: Sequence[str] = ()) -> Optional[str]:
        result.replies.append(text)
        return self._notify(chat_id, text, mentions)

    def _window_label(self) -> str:
        window = self.clock.day_window(self.now())
        last = window.end - timedelta(minutes=1)
        return f"{window.start:%H:%M}-{last:%H:%M}"

    def _term_label(self) -> str:
        days = self.settings.ADMIN_TERM_DAYS
        return "a week" if days == 7 else f"{days} days"

    def _announce_effect(self, effect: OutcomeEffect) -> None:
        target = self._broadcast_target(effect.author_id)
        author = self.name(effect.author_id)
        if effect.outcome == Outcome.APPROVED:
            self._notify(
                target,
                f"[BOT] Approved: @{author}. Streak: {effect.streak_length}",
                [effect.author_id],
            )
        elif effect.admin is not None:
            admin_id = effect.admin.member_id
            self._notify(
                target,
                f"[BOT] Rejected: @{author}. @{self.name(admin_id)} is declared admin for "
                f"{self._term_label()} (please have owner promote).",
                [effect.author_id, admin_id],
            )
        else:
            self._notify(target, f"[BOT] Rejected: @{author}.", [effect.author_id])

    def _announce_pick(self, pick: Pick) -> None:
        member_id = pick.member_id
        # 本人への DM が届かなくてもサイクルは止めない（グループ告知だけになる）
        dm_id = self._notify(
            member_id,
            "[BOT] You were picked for today. Reply with 'video' or 'voice' to choose how you'll record.",
        )
        if dm_id is None:
            logger.info("Direct pick notice to %s failed; broadcast only", member_id)

        self._notify(
            self._broadcast_target(),
            f"[BOT] Today's pick: @{self.name(member_id)} - they will record during the "
            f"{self._window_label()} window.",
            [member_id],
        )

    # -----------------------------
    # 日次サイクル
    # -----------------------------

    def run_daily_cycle(self) -> CycleResult:
        with self._lock:
            result = self.picks.run_daily_cycle(self.now())
            try:
                self.commit()
            except PersistenceError:
                logger.exception("Daily cycle for %s was not saved", result.day_key)
                self._notify(self._broadcast_target(), NOT_SAVED_WARNING)
                raise

            for effect in result.effects:
                self._announce_effect(effect)
            if result.created and result.pick is not None:
                self._announce_pick(result.pick)
            return result

    def catch_up(self) -> Optional[CycleResult]:
        """起動時: 今日の Pick がなければ（タイマーの取りこぼし）日次サイクルを1回実行する"""
        with self._lock:
            if self.picks.current_pick(self.now()) is not None:
                return None
            logger.info("No pick for today at startup; running the daily cycle now")
            return self.run_daily_cycle()

    # -----------------------------
    # オペレーター操作
    # -----------------------------

    def add_member(self, member_id: str, name: Optional[str] = None):
        with self._lock:
            member = self.roster.add_member(member_id, name)
            self.commit()
            return member

    def sync_roster(self) -> list[str]:
        with self._lock:
            group_id = self.state.config.channel_target
            if not group_id:
                raise RosterUnavailableError("GROUP not configured.")
            ids = self.channel.fetch_group_members(group_id)
            added = self.roster.sync_from_external_roster(ids)
            self.commit()
            return added

    def manual_pick(self) -> tuple[str, Pick]:
        with self._lock:
            day_key, pick = self.picks.manual_pick(self.now())
            self.commit()
            return day_key, pick

    def update_config(self, day_start_hour: Optional[int] = None, channel_target: Optional[str] = None) -> WheelConfig:
        with self._lock:
            config = self.state.config
            if day_start_hour is not None:
                config.day_start_hour = day_start_hour
            if channel_target is not None:
                config.channel_target = channel_target
            self.commit()
            self._build_components()
            logger.info("Config updated: day_start_hour=%d channel_target=%s", config.day_start_hour, config.channel_target)
            return config

    def status_lines(self) -> list[str]:
        now = self.now()
        lines = ["[BOT] Status:"]
        lines.append("Members: " + ", ".join(m.display_name for m in self.roster.list()))
        pick = self.picks.current_pick(now)
        if pick is None:
            lines.append("Today: none")
        else:
            lines.append(f"Today: {self.name(pick.member_id)} ({pick.recording_mode.value})")
        admin = self.streaks.active_admin(now)
        if admin is not None:
            lines.append(f"Admin label: {self.name(admin.member_id)} until {admin.expires_at.isoformat(timespec='minutes')}")
        return lines

    def leaderboard_lines(self) -> list[str]:
        items = self.streaks.leaderboard(self.settings.LEADERBOARD_SIZE)
        if not items:
            return ["[BOT] Leaderboard:", "No streaks yet"]
        return ["[BOT] Leaderboard:"] + [f"{self.name(mid)}: {s.current_length}" for mid, s in items]

    # -----------------------------
    # 受信メッセージ
    # -----------------------------

    def _accepts_chat(self, message: InboundMessage) -> bool:
        target = self.state.config.channel_target
        return not target or message.chat_id == target or message.is_direct

    def handle_message(self, message: InboundMessage) -> MessageResult:
        with self._lock:
            if not self._accepts_chat(message):
                return MessageResult(action="ignored", handled=False)

            result = MessageResult(action="ignored", handled=False)
            try:
                if message.media_kind is not None:
                    return self._handle_media(message, result)

                command = parse_command(message.text or "", self.settings.COMMAND_PREFIX)
                if command is None:
                    return result
                return self._dispatch(command, message, result)
            except PersistenceError as e:
                logger.error("Action from %s not saved: %s", message.sender_id, e.message)
                result.error_code = e.code
                self._reply(result, message.chat_id, NOT_SAVED_WARNING)
                return result

    def _handle_media(self, message: InboundMessage, result: MessageResult) -> MessageResult:
        sender = message.sender_id
        submission = self.ledger.record_submission(sender, message.media_kind, self.now())
        self.commit()
        result.submission_id = submission.id
        result.handled = True

        if submission.off_cycle:
            result.action = "off_cycle_submission"
            self._reply(
                result,
                message.chat_id,
                f"[BOT] Received media from @{self.name(sender)} (not today's pick).",
                [sender],
            )
            return result

        result.action = "submission"
        announcement_id = self._reply(
            result,
            self._broadcast_target(message.chat_id),
            f"[BOT] Submission received from @{self.name(sender)}. "
            "Please vote by replying 'approve' or 'reject'.",
            [sender],
        )
        if announcement_id is not None:
            self.ledger.bind_announcement(submission.id, announcement_id)
            self.commit()
        return result

    def _dispatch(self, command: ParsedCommand, message: InboundMessage, result: MessageResult) -> MessageResult:
        chat = message.chat_id
        result.action = command.name
        result.handled = True

        if command.name == "vote":
            return self._handle_vote(message, command.args[0] == "approve", result)

        if command.name == "mode":
            pick = self.picks.choose_recording_mode(message.sender_id, MODE_WORDS[command.args[0]], self.now())
            if pick is None:
                result.action = "ignored"
                result.handled = False
                return result
            self.commit()
            result.action = "recording_mode"
            self._reply(result, chat, f"[BOT] Got it, you'll record a {pick.recording_mode.value} today.")
            return result

        if command.name == "status":
            self._reply(result, chat, "\n".join(self.status_lines()))
        elif command.name == "leaderboard":
            self._reply(result, chat, "\n".join(self.leaderboard_lines()))
        elif command.name == "pick":
            try:
                _, pick = self.manual_pick()
            except EmptyRosterError:
                logger.info("Manual pick requested with an empty roster")
                self._reply(result, chat, "[BOT] No members to pick.")
            else:
                self._reply(result, chat, f"[BOT] Manual pick: @{self.name(pick.member_id)}", [pick.member_id])
        elif command.name == "sync":
            try:
                added = self.sync_roster()
            except RosterUnavailableError as e:
                logger.warning("Roster sync failed: %s", e.message)
                self._reply(result, chat, f"[BOT] Sync failed: {e.message}")
            else:
                self._reply(result, chat, f"[BOT] Synced group participants into members list ({len(added)} new).")
        elif command.name == "addmember":
            if not command.args:
                self._reply(result, chat, "[BOT] Usage: addmember <id> [name]")
            else:
                member = self.add_member(command.args[0], " ".join(command.args[1:]) or None)
                self._reply(result, chat, f"[BOT] Added member {member.display_name}")
        return result

    def _handle_vote(self, message: InboundMessage, approve: bool, result: MessageResult) -> MessageResult:
        sender = message.sender_id
        chat = message.chat_id
        try:
            vote = self.voting.cast_vote(sender, approve, self.now(), message.quoted_message_id)
        except UnresolvedVoteTargetError as e:
            result.error_code = e.code
            self._reply(result, chat, f"[BOT] {e.message}")
            return result
        except AlreadyFinalizedError as e:
            result.error_code = e.code
            result.submission_id = e.submission_id
            self._reply(result, chat, f"[BOT] {e.message}")
            return result

        self.commit()
        result.submission_id = vote.submission.id
        self._reply(
            result,
            chat,
            f"[BOT] Recorded vote from @{self.name(sender)}: {'approve' if approve else 'reject'}",
            [sender],
        )
        if vote.effect is not None:
            self._announce_effect(vote.effect)
        return result
