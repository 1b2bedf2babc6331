# tests/test_scheduler.py

from vlogwheel.core.scheduler import DAILY_JOB_ID, WheelScheduler
from vlogwheel.errors import EmptyRosterError

from tests.helpers import B


def _hour_minute(job):
    fields = {f.name: str(f) for f in job.trigger.fields}
    return fields["hour"], fields["minute"]


def test_start_registers_daily_job(wheel):
    scheduler = WheelScheduler(wheel)
    scheduler.start()
    try:
        assert scheduler.running is True
        job = scheduler.scheduler.get_job(DAILY_JOB_ID)
        assert job is not None
        assert _hour_minute(job) == ("5", "0")

        # 二重起動しても同じスケジューラのまま
        inner = scheduler.scheduler
        scheduler.start()
        assert scheduler.scheduler is inner
    finally:
        scheduler.shutdown()

    assert scheduler.running is False


def test_reschedule_follows_day_start_hour(wheel):
    scheduler = WheelScheduler(wheel)
    scheduler.start()
    try:
        wheel.update_config(day_start_hour=7)
        scheduler.reschedule()

        job = scheduler.scheduler.get_job(DAILY_JOB_ID)
        assert _hour_minute(job) == ("7", "0")
    finally:
        scheduler.shutdown()


def test_job_errors_do_not_propagate(wheel, monkeypatch):
    def failing_cycle():
        raise EmptyRosterError("No members to pick.")

    monkeypatch.setattr(wheel, "run_daily_cycle", failing_cycle)
    scheduler = WheelScheduler(wheel)

    # 例外を外に出さない
    scheduler._run_daily_cycle()


def test_scheduled_run_picks_today(wheel):
    WheelScheduler(wheel)._run_daily_cycle()

    assert wheel.state.get_pick("2024-03-10").member_id == B
