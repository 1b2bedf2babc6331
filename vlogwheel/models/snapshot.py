# vlogwheel/models/snapshot.py
from sqlalchemy import Column, String, Text, DateTime
from datetime import datetime, timezone

from ..db import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WheelSnapshot(Base):
    """
    ホイールの全状態を JSON 文書1つとして保持するテーブル。
    行は id="main" の1行だけで、更新のたびに document を丸ごと書き換える。
    """

    __tablename__ = "wheel_snapshots"

    id = Column(String, primary_key=True)
    document = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)
