# tests/helpers.py
from datetime import datetime, timedelta, timezone

GROUP = "group@g.us"
A = "111@s.whatsapp.net"
B = "222@s.whatsapp.net"
C = "333@s.whatsapp.net"


class FakeNow:
    """Wheel に渡す固定時計。set / advance で進める"""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def set(self, moment: datetime) -> None:
        self.current = moment

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


class FixedChoice:
    """choice で指定 ID のメンバーを順番に返す乱数ソース（最後の1つは使い回す）"""

    def __init__(self, *member_ids: str):
        self.queue = list(member_ids)

    def choice(self, seq):
        wanted = self.queue.pop(0) if len(self.queue) > 1 else self.queue[0]
        return next(m for m in seq if m.id == wanted)


def at(day: int, hour: int, minute: int = 0) -> datetime:
    """2024-03-{day} hour:minute UTC"""
    return datetime(2024, 3, day, hour, minute, tzinfo=timezone.utc)
