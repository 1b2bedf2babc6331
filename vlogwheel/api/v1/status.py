# vlogwheel/api/v1/status.py

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from ...api.deps import get_scheduler_dep, get_wheel_dep
from ...core.scheduler import WheelScheduler
from ...core.wheel import Wheel
from ...errors import PersistenceError
from ...schemas.status import (
    AdminOut,
    ConfigOut,
    ConfigUpdate,
    LeaderboardItem,
    MemberOut,
    PickOut,
    StatusOut,
)

router = APIRouter(tags=["status"])


@router.get("/status", response_model=StatusOut)
def get_status(
    wheel: Wheel = Depends(get_wheel_dep),
):
    """ロスター・今日の担当者・有効な admin を返す"""
    with wheel.lock:
        now = wheel.now()
        today = wheel.clock.day_key(now)

        pick_out = None
        pick = wheel.state.get_pick(today)
        if pick is not None:
            pick_out = PickOut(
                day_key=today,
                member_id=pick.member_id,
                display_name=wheel.name(pick.member_id),
                recording_mode=pick.recording_mode,
                submission_ids=list(pick.submission_ids),
            )

        admin_out = None
        admin = wheel.streaks.active_admin(now)
        if admin is not None:
            admin_out = AdminOut(
                member_id=admin.member_id,
                display_name=wheel.name(admin.member_id),
                expires_at=admin.expires_at,
            )

        roster = [MemberOut.model_validate(m) for m in wheel.roster.list()]
        return StatusOut(
            members=wheel.roster.size(),
            roster=roster,
            today=today,
            pick=pick_out,
            admin=admin_out,
        )


@router.get("/leaderboard", response_model=list[LeaderboardItem])
def get_leaderboard(
    limit: Optional[int] = None,
    wheel: Wheel = Depends(get_wheel_dep),
):
    with wheel.lock:
        items = wheel.streaks.leaderboard(limit or wheel.settings.LEADERBOARD_SIZE)
        return [
            LeaderboardItem(
                member_id=member_id,
                display_name=wheel.name(member_id),
                current_length=streak.current_length,
                last_credited_day_key=streak.last_credited_day_key,
            )
            for member_id, streak in items
        ]


@router.get("/config", response_model=ConfigOut)
def get_config(
    wheel: Wheel = Depends(get_wheel_dep),
):
    return ConfigOut.model_validate(wheel.state.config)


@router.put("/config", response_model=ConfigOut)
def update_config(
    data: ConfigUpdate,
    wheel: Wheel = Depends(get_wheel_dep),
    scheduler: Optional[WheelScheduler] = Depends(get_scheduler_dep),
):
    """
    Configuration の更新（明示的な管理操作のみ）。
    day_start_hour を変えた場合は日次ジョブも付け替える。
    """
    try:
        config = wheel.update_config(
            day_start_hour=data.day_start_hour,
            channel_target=data.channel_target,
        )
    except PersistenceError:
        raise HTTPException(status_code=503, detail="Config may not have been saved")

    if scheduler is not None and data.day_start_hour is not None:
        scheduler.reschedule()
    return ConfigOut.model_validate(config)
