# tests/conftest.py
import os

# アプリ本体を import する前にテスト用の設定にしておく
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_vlogwheel.db")
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["CATCH_UP_ON_START"] = "false"
os.environ["GATEWAY_URL"] = ""

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from vlogwheel.config import Settings  # noqa: E402
from vlogwheel.core.channel import RecordingChannel  # noqa: E402
from vlogwheel.core.store import StateStore  # noqa: E402
from vlogwheel.core.wheel import Wheel  # noqa: E402
from vlogwheel.db import Base, SessionLocal, engine  # noqa: E402
from vlogwheel.main import create_app  # noqa: E402
from tests.helpers import A, B, C, GROUP, FakeNow, FixedChoice, at  # noqa: E402


@pytest.fixture(scope="function")
def db() -> Session:
    """
    テストごとにクリーンな DB を用意するフィクスチャ。
    アプリ本体と同じ engine を使う。
    """
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(db: Session) -> StateStore:
    return StateStore(SessionLocal)


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel(groups={GROUP: [A, B, C]})


@pytest.fixture
def now() -> FakeNow:
    return FakeNow(at(10, 5))


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        DAY_START_HOUR=5,
        TIMEZONE="UTC",
        GROUP_ID=GROUP,
        GATEWAY_URL=None,
        SCHEDULER_ENABLED=False,
        CATCH_UP_ON_START=False,
    )


@pytest.fixture
def make_wheel(store: StateStore, channel: RecordingChannel, now: FakeNow, test_settings: Settings):
    """
    メンバー登録済みの Wheel を作るファクトリ。
    picks で抽選結果の順番を固定できる。
    """

    def _make(members=(A, B, C), picks=(B,)) -> Wheel:
        wheel = Wheel(
            store,
            channel,
            settings_obj=test_settings,
            random_source=FixedChoice(*picks),
            now_fn=now,
        )
        for member_id in members:
            wheel.add_member(member_id)
        return wheel

    return _make


@pytest.fixture
def wheel(make_wheel) -> Wheel:
    return make_wheel()


@pytest.fixture(scope="function")
def client(wheel: Wheel) -> TestClient:
    """
    テスト用 Wheel を差し込んだ app の TestClient。
    """
    app = create_app(wheel=wheel, start_scheduler=False, catch_up=False)
    with TestClient(app) as c:
        yield c
