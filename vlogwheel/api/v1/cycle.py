# vlogwheel/api/v1/cycle.py

from fastapi import APIRouter, Depends, HTTPException

from ...api.deps import get_wheel_dep
from ...core.wheel import Wheel
from ...errors import EmptyRosterError, PersistenceError
from ...schemas.status import CycleRunOut

router = APIRouter(prefix="/cycle", tags=["cycle"])


def _run_out(day_key: str, pick, created: bool, finalized: list[str], detail: str | None) -> CycleRunOut:
    return CycleRunOut(
        day_key=day_key,
        picked_member_id=pick.member_id if pick else None,
        created=created,
        finalized_submission_ids=finalized,
        detail=detail,
    )


@router.post("/run", response_model=CycleRunOut)
def run_cycle(
    wheel: Wheel = Depends(get_wheel_dep),
):
    """
    日次サイクルを今すぐ実行する（オペレーター用）。
    今日の Pick がすでにあれば抽選はせず、前日までの締めだけ行う。
    """
    try:
        result = wheel.run_daily_cycle()
    except PersistenceError:
        raise HTTPException(status_code=503, detail="Cycle may not have been saved")

    return _run_out(
        result.day_key,
        result.pick,
        result.created,
        [e.submission_id for e in result.effects],
        result.skipped,
    )


@router.post("/manual_pick", response_model=CycleRunOut)
def manual_pick(
    wheel: Wheel = Depends(get_wheel_dep),
):
    """手動抽選（今日の Pick を上書き）。ロスターが空なら 400"""
    try:
        day_key, pick = wheel.manual_pick()
    except EmptyRosterError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except PersistenceError:
        raise HTTPException(status_code=503, detail="Pick may not have been saved")

    return _run_out(day_key, pick, True, [], None)
