# vlogwheel/core/scheduler.py

import logging
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from .wheel import Wheel
from ..errors import WheelError

logger = logging.getLogger("vlogwheel.scheduler")

DAILY_JOB_ID = "daily_cycle"


class WheelScheduler:
    """日次サイクルを day_start_hour:00（設定タイムゾーン）に起動する"""

    def __init__(self, wheel: Wheel):
        self.wheel = wheel
        self.scheduler: Optional[BackgroundScheduler] = None

    @property
    def running(self) -> bool:
        return self.scheduler is not None

    def _trigger(self) -> CronTrigger:
        return CronTrigger(
            hour=self.wheel.state.config.day_start_hour,
            minute=0,
            timezone=self.wheel.settings.TIMEZONE,
        )

    def _run_daily_cycle(self) -> None:
        try:
            result = self.wheel.run_daily_cycle()
            logger.info(
                "Daily cycle %s: created=%s finalized=%d skipped=%s",
                result.day_key, result.created, len(result.effects), result.skipped,
            )
        except WheelError as e:
            # ジョブの例外でスケジューラを止めない
            logger.error("Daily cycle failed (%s): %s", e.code, e.message)

    def start(self) -> None:
        if self.running:
            logger.warning("Scheduler already running")
            return

        self.scheduler = BackgroundScheduler()
        self.scheduler.add_job(
            self._run_daily_cycle,
            self._trigger(),
            id=DAILY_JOB_ID,
            name="Daily pick cycle",
            coalesce=True,
            max_instances=1,
        )
        self.scheduler.start()
        logger.info("Scheduler started (daily cycle at %02d:00 %s)",
                    self.wheel.state.config.day_start_hour, self.wheel.settings.TIMEZONE)

    def reschedule(self) -> None:
        """day_start_hour が変わったときに呼ぶ"""
        if self.scheduler is None:
            return
        self.scheduler.reschedule_job(DAILY_JOB_ID, trigger=self._trigger())
        logger.info("Daily cycle rescheduled to %02d:00", self.wheel.state.config.day_start_hour)

    def shutdown(self) -> None:
        if self.scheduler is None:
            return
        self.scheduler.shutdown(wait=False)
        self.scheduler = None
        logger.info("Scheduler stopped")
