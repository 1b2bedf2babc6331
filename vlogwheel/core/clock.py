# vlogwheel/core/clock.py

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo


@dataclass(frozen=True)
class DayWindow:
    """半開区間 [start, end)"""
    start: datetime
    end: datetime


class DayClock:
    """
    タイムスタンプ → 日付キー（YYYY-MM-DD）の変換。

    - 1日は day_start_hour:00 に始まる（例: 5 → 05:00〜翌04:59）
    - ローカル時刻が day_start_hour より前なら「前日」扱い
    - 純粋関数のみ。メモリ上のカウンタには依存しないので再起動しても同じ結果
    """

    def __init__(self, day_start_hour: int = 5, tz: str = "UTC"):
        if not 0 <= day_start_hour <= 23:
            raise ValueError("day_start_hour must be between 0 and 23")
        self.day_start_hour = day_start_hour
        self.tz = ZoneInfo(tz)

    def _local(self, ts: datetime) -> datetime:
        # naive はすでにローカル時刻とみなす
        if ts.tzinfo is None:
            return ts.replace(tzinfo=self.tz)
        return ts.astimezone(self.tz)

    def day_date(self, ts: datetime) -> date:
        local = self._local(ts)
        if local.hour < self.day_start_hour:
            return local.date() - timedelta(days=1)
        return local.date()

    def day_key(self, ts: datetime) -> str:
        return self.day_date(ts).isoformat()

    def day_window(self, ts: datetime) -> DayWindow:
        # start は「日付キーの日」の day_start_hour:00:00.000
        # end は UTC で +24h（夏時間の切り替え日も 24 時間幅。壁時計の時刻は 1 時間ずれる）
        d = self.day_date(ts)
        start = datetime(d.year, d.month, d.day, self.day_start_hour, tzinfo=self.tz)
        end = (start.astimezone(timezone.utc) + timedelta(days=1)).astimezone(self.tz)
        return DayWindow(start=start, end=end)

    def today_key(self, now: datetime) -> str:
        return self.day_key(now)

    def yesterday_key(self, now: datetime) -> str:
        return previous_day_key(self.day_key(now))


def previous_day_key(day_key: str) -> str:
    return (date.fromisoformat(day_key) - timedelta(days=1)).isoformat()


def next_day_key(day_key: str) -> str:
    return (date.fromisoformat(day_key) + timedelta(days=1)).isoformat()
