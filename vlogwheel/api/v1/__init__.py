# vlogwheel/api/v1/__init__.py

from fastapi import APIRouter

from . import messages, status, cycle

api_router = APIRouter()

# それぞれの router 側で prefix を持っている前提にする
api_router.include_router(messages.router)  # prefix="/messages"
api_router.include_router(status.router)    # /status, /leaderboard, /config
api_router.include_router(cycle.router)     # prefix="/cycle"
