# vlogwheel/core/channel.py

import itertools
import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol, Sequence

import httpx

from ..errors import NotificationDeliveryError, RosterUnavailableError

logger = logging.getLogger("vlogwheel.channel")


class MessageChannel(Protocol):
    """外部メッセージング（送信とグループ名簿の取得）"""

    def send(self, target_id: str, text: str, mentions: Sequence[str] = ()) -> str:
        """送信してアナウンス ID を返す。失敗時は NotificationDeliveryError"""
        ...

    def fetch_group_members(self, group_id: str) -> list[str]:
        """失敗時は RosterUnavailableError"""
        ...


class GatewayChannel:
    """
    HTTP ゲートウェイ経由の送受信。
    - POST {base}/messages       {"to", "text", "mentions"} -> {"id": "..."}
    - GET  {base}/groups/{id}/members                      -> {"members": ["..."]}
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def send(self, target_id: str, text: str, mentions: Sequence[str] = ()) -> str:
        try:
            resp = self._client.post(
                "/messages",
                json={"to": target_id, "text": text, "mentions": list(mentions)},
            )
            resp.raise_for_status()
            return str(resp.json()["id"])
        except (httpx.HTTPError, KeyError, TypeError, ValueError) as e:
            raise NotificationDeliveryError(f"send to {target_id} failed: {e}", target_id=target_id) from e

    def fetch_group_members(self, group_id: str) -> list[str]:
        try:
            resp = self._client.get(f"/groups/{group_id}/members")
            resp.raise_for_status()
            payload = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise RosterUnavailableError(f"could not fetch members of {group_id}: {e}") from e

        members = payload.get("members") if isinstance(payload, dict) else None
        if not isinstance(members, list):
            raise RosterUnavailableError(f"unexpected member list for {group_id}: {payload!r}")
        return [str(m) for m in members]

    def close(self) -> None:
        self._client.close()


@dataclass
class SentMessage:
    id: str
    target_id: str
    text: str
    mentions: list[str]


@dataclass
class RecordingChannel:
    """
    メモリ上に送信内容を記録するだけのチャンネル（テスト・ゲートウェイ未設定時用）。
    unreachable に入れた宛先への送信は失敗する。
    """

    groups: dict[str, list[str]] = field(default_factory=dict)
    unreachable: set[str] = field(default_factory=set)
    sent: list[SentMessage] = field(default_factory=list)
    _ids: itertools.count = field(default_factory=lambda: itertools.count(1), repr=False)

    def send(self, target_id: str, text: str, mentions: Sequence[str] = ()) -> str:
        if not target_id or target_id in self.unreachable:
            raise NotificationDeliveryError(f"{target_id or '(empty)'} is unreachable", target_id=target_id)
        message = SentMessage(id=f"m{next(self._ids)}", target_id=target_id, text=text, mentions=list(mentions))
        self.sent.append(message)
        logger.debug("Recorded message %s to %s: %s", message.id, target_id, text)
        return message.id

    def fetch_group_members(self, group_id: str) -> list[str]:
        if group_id not in self.groups:
            raise RosterUnavailableError(f"unknown group {group_id}")
        return list(self.groups[group_id])

    def texts_to(self, target_id: str) -> list[str]:
        return [m.text for m in self.sent if m.target_id == target_id]
