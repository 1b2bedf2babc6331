# vlogwheel/main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .config import settings, validate_config
from .db import Base, SessionLocal, engine
from .logging_setup import configure_logging
from .api.v1 import api_router as api_v1_router
from .core.channel import GatewayChannel, MessageChannel, RecordingChannel
from .core.scheduler import WheelScheduler
from .core.store import StateStore
from .core.wheel import Wheel
from .errors import RosterUnavailableError, WheelError

logger = logging.getLogger("vlogwheel")


def build_channel() -> MessageChannel:
    if settings.GATEWAY_URL:
        return GatewayChannel(settings.GATEWAY_URL, settings.GATEWAY_TOKEN, settings.GATEWAY_TIMEOUT_SEC)
    logger.warning("GATEWAY_URL not set; outbound messages are only recorded in memory")
    return RecordingChannel()


def build_wheel() -> Wheel:
    # モデルからテーブル作成
    Base.metadata.create_all(bind=engine)
    return Wheel(StateStore(SessionLocal), build_channel())


def create_app(
    wheel: Optional[Wheel] = None,
    start_scheduler: Optional[bool] = None,
    catch_up: Optional[bool] = None,
) -> FastAPI:
    """
    wheel を渡さなければ設定から組み立てる（テストでは RecordingChannel 付きの Wheel を渡す）。
    """
    use_scheduler = settings.SCHEDULER_ENABLED if start_scheduler is None else start_scheduler
    use_catch_up = settings.CATCH_UP_ON_START if catch_up is None else catch_up

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting vlogwheel...")
        app.state.wheel = wheel or build_wheel()

        # グループが設定されていれば起動時に参加者をロスターへ取り込む（追加のみ）
        if app.state.wheel.state.config.channel_target:
            try:
                added = app.state.wheel.sync_roster()
                logger.info("Startup roster sync added %d member(s)", len(added))
            except RosterUnavailableError as e:
                logger.warning("Startup roster sync failed: %s", e.message)
            except WheelError as e:
                logger.error("Startup roster sync failed (%s): %s", e.code, e.message)

        if use_catch_up:
            try:
                app.state.wheel.catch_up()
            except WheelError as e:
                logger.error("Startup catch-up failed (%s): %s", e.code, e.message)

        app.state.scheduler = None
        if use_scheduler:
            app.state.scheduler = WheelScheduler(app.state.wheel)
            app.state.scheduler.start()
        try:
            yield
        finally:
            if app.state.scheduler is not None:
                app.state.scheduler.shutdown()
            close = getattr(app.state.wheel.channel, "close", None)
            if close is not None:
                close()
            logger.info("Stopping vlogwheel...")

    app = FastAPI(
        title="Vlog Wheel API",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.include_router(api_v1_router, prefix="/api")

    @app.get("/")
    def read_root():
        return {"message": "Vlog Wheel API is running"}

    return app


configure_logging(settings.ENV, settings.LOG_LEVEL)
validate_config()

app = create_app()
