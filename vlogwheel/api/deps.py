# vlogwheel/api/deps.py

from typing import Optional

from fastapi import HTTPException, Request

from ..core.scheduler import WheelScheduler
from ..core.wheel import Wheel


def get_wheel_dep(request: Request) -> Wheel:
    """
    FastAPI の Depends で使う Wheel 取得関数。
    エンドポイント側では `wheel: Wheel = Depends(get_wheel_dep)` で利用。
    """
    wheel = getattr(request.app.state, "wheel", None)
    if wheel is None:
        raise HTTPException(status_code=503, detail="Wheel is not ready")
    return wheel


def get_scheduler_dep(request: Request) -> Optional[WheelScheduler]:
    return getattr(request.app.state, "scheduler", None)
