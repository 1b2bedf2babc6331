# vlogwheel/config.py
import logging
from typing import Optional

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # 実行環境
    ENV: str = "development"
    CONFIG_STRICT: bool = False
    LOG_LEVEL: str = "INFO"

    # 永続化（スナップショット1行を保存する DB）
    DATABASE_URL: str = "sqlite:///./vlogwheel.db"

    # 初回起動時の Configuration の初期値（以後はスナップショット側が正）
    GROUP_ID: str = ""
    DAY_START_HOUR: int = 5
    TIMEZONE: str = "UTC"

    # ルール
    ADMIN_TERM_DAYS: int = 7
    LEADERBOARD_SIZE: int = 10
    COMMAND_PREFIX: str = "!"

    # メッセージゲートウェイ
    GATEWAY_URL: Optional[str] = None
    GATEWAY_TOKEN: Optional[str] = None
    GATEWAY_TIMEOUT_SEC: float = 10.0

    # スケジューラ
    SCHEDULER_ENABLED: bool = True
    CATCH_UP_ON_START: bool = True

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()


def validate_config(
    strict: Optional[bool] = None,
    settings_obj: Optional[Settings] = None,
    logger: Optional[logging.Logger] = None,
) -> bool:
    """
    必須設定のチェック。
    strict モードでは RuntimeError、それ以外は warning を出すだけ。
    トークンなどの値そのものはログに出さない。
    """
    cfg = settings_obj or settings
    log = logger or logging.getLogger("vlogwheel")
    strict_mode = strict if strict is not None else cfg.CONFIG_STRICT

    problems: list[str] = []
    if not cfg.GATEWAY_URL:
        problems.append("GATEWAY_URL (outbound messages will only be recorded in memory)")
    if not cfg.GROUP_ID:
        problems.append("GROUP_ID (broadcasts and roster sync are disabled)")
    if not 0 <= cfg.DAY_START_HOUR <= 23:
        problems.append("DAY_START_HOUR must be between 0 and 23")

    if problems:
        message = f"Configuration issues: {'; '.join(problems)}"
        if strict_mode:
            raise RuntimeError(message)
        log.warning(message)

    return True
