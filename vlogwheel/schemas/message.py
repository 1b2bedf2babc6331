# vlogwheel/schemas/message.py

from typing import Literal, Optional

from pydantic import BaseModel, Field

from .state import MediaKind

InboundMediaLiteral = Literal["video", "voice", "audio", "document"]


class InboundMessage(BaseModel):
    """ゲートウェイから届く正規化済みメッセージ"""
    sender_id: str = Field(..., min_length=1)
    chat_id: str = Field(..., min_length=1)
    text: Optional[str] = None
    media: Optional[InboundMediaLiteral] = None
    quoted_message_id: Optional[str] = None

    @property
    def media_kind(self) -> Optional[MediaKind]:
        # audio / document は voice 扱い
        if self.media is None:
            return None
        return MediaKind.VIDEO if self.media == "video" else MediaKind.VOICE

    @property
    def is_direct(self) -> bool:
        return self.chat_id == self.sender_id


class MessageResult(BaseModel):
    """1メッセージの処理結果（HTTP レスポンス兼テスト用）"""
    action: str
    handled: bool = True
    replies: list[str] = []
    submission_id: Optional[str] = None
    error_code: Optional[str] = None
