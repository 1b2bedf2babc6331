# vlogwheel/core/store.py

import logging
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import PersistenceError
from ..models.snapshot import WheelSnapshot
from ..schemas.state import WheelConfig, WheelState

logger = logging.getLogger("vlogwheel.store")

SNAPSHOT_ID = "main"


class StateStore:
    """
    WheelState を JSON 文書として wheel_snapshots の1行に保存する。
    save は毎回文書全体を書き換え、コミットが終わるまで戻らない。
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def load(self, defaults: Optional[WheelConfig] = None) -> WheelState:
        """保存済みの状態を読む。なければ defaults の config で新規作成（まだ保存はしない）"""
        with self.session_factory() as db:
            row = db.get(WheelSnapshot, SNAPSHOT_ID)
            if row is None:
                logger.info("No snapshot found; starting with an empty state")
                return WheelState(config=defaults or WheelConfig())
            state = WheelState.model_validate_json(row.document)

        logger.info(
            "Loaded snapshot: %d members, %d picks, %d submissions",
            len(state.members), len(state.picks), len(state.submissions),
        )
        return state

    def save(self, state: WheelState) -> None:
        document = state.model_dump_json()
        db = self.session_factory()
        try:
            row = db.get(WheelSnapshot, SNAPSHOT_ID)
            if row is None:
                row = WheelSnapshot(id=SNAPSHOT_ID, document=document)
                db.add(row)
            else:
                row.document = document
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Snapshot write failed: %s", e)
            raise PersistenceError("State could not be saved.") from e
        finally:
            db.close()

    def reset(self) -> None:
        """スナップショットを削除する（開発・テスト用）"""
        with self.session_factory() as db:
            row = db.get(WheelSnapshot, SNAPSHOT_ID)
            if row is not None:
                db.delete(row)
                db.commit()
