# vlogwheel/core/roster.py

import logging
from collections.abc import Iterable

from ..schemas.state import Member, WheelState

logger = logging.getLogger("vlogwheel.roster")


def default_display_name(member_id: str) -> str:
    """チャット ID の '@' より前をデフォルト表示名にする"""
    return member_id.split("@")[0]


class RosterStore:
    def __init__(self, state: WheelState):
        self.state = state

    def add_member(self, member_id: str, name: str | None = None) -> Member:
        """追加 or 名前の上書き（常に成功）"""
        member = Member(id=member_id, display_name=name or default_display_name(member_id))
        return self.state.upsert_member(member)

    def sync_from_external_roster(self, ids: Iterable[str]) -> list[str]:
        """
        外部ロスターとの同期（追加のみ）。
        - 未登録の ID だけデフォルト名で追加
        - 既存メンバーはそのまま
        - 外部ロスターにいないメンバーも削除しない（過去の streak / pick が孤立するため）
        戻り値は新しく追加した ID のリスト。
        """
        added: list[str] = []
        for member_id in ids:
            if not member_id or self.state.get_member(member_id) is not None:
                continue
            self.state.upsert_member(Member(id=member_id, display_name=default_display_name(member_id)))
            added.append(member_id)
        logger.info("Roster sync added %d member(s)", len(added))
        return added

    def list(self) -> list[Member]:
        # 乱数ソースを固定したときに結果が決まるよう ID 順で返す
        return [self.state.members[k] for k in sorted(self.state.members)]

    def size(self) -> int:
        return len(self.state.members)

    def display_name(self, member_id: str) -> str:
        member = self.state.get_member(member_id)
        return member.display_name if member else default_display_name(member_id)
