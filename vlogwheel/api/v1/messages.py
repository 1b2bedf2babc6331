# vlogwheel/api/v1/messages.py

from fastapi import APIRouter, Depends, HTTPException

from ...api.deps import get_wheel_dep
from ...core.wheel import Wheel
from ...schemas.message import InboundMessage, MessageResult

router = APIRouter(prefix="/messages", tags=["messages"])


@router.post("", response_model=MessageResult)
def receive_message(
    data: InboundMessage,
    wheel: Wheel = Depends(get_wheel_dep),
):
    """
    ゲートウェイからの受信メッセージ:
    - media 付き → 投稿として記録（今日の担当者以外は off-cycle）
    - approve / reject など → 投票
    - !status などのコマンド → 返信
    保存に失敗した場合は 503（チャットにも警告を返している）
    """
    if not data.text and data.media is None:
        raise HTTPException(status_code=400, detail="Message has neither text nor media")

    result = wheel.handle_message(data)
    if result.error_code == "persistence_failure":
        raise HTTPException(status_code=503, detail="Action may not have been saved")
    return result
