"""
공통 pytest fixture.

- crewup import 전에 환경 변수 설정 (모듈 레벨 엔진/Redis 클라이언트가 로컬 인프라를 찾지 않도록)
- 테스트마다 새 in-memory SQLite (StaticPool: 모든 세션이 같은 커넥션 공유)
- Redis 발행은 FakeRedis로 대체해서 발행된 이벤트를 검사
"""

import json
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("LOG_FILE", "")

from datetime import datetime, timezone  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from crewup.database import build_engine, get_db  # noqa: E402
from crewup.models import Base  # noqa: E402
from crewup.models.user import User, UserBlock  # noqa: E402

T0 = datetime(2026, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeRedis:
    """publish 호출만 기록하는 Redis 대역."""

    def __init__(self):
        self.published = []

    async def publish(self, channel, message):
        self.published.append((channel, json.loads(message)))
        return 0

    def events(self, channel):
        return [payload["type"] for ch, payload in self.published if ch == channel]


@pytest.fixture
def engine():
    eng = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def fake_redis(monkeypatch):
    from crewup.realtime import sse_pubsub

    fake = FakeRedis()
    monkeypatch.setattr(sse_pubsub, "redis_client", fake)
    return fake


@pytest.fixture
def client(session_factory, fake_redis):
    from fastapi.testclient import TestClient

    from crewup.main import app

    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    # with 블록 없이 생성 → startup(alembic upgrade) 이벤트는 실행되지 않음
    yield TestClient(app)
    app.dependency_overrides.clear()


def as_user(user_id: str) -> dict:
    return {"X-User-Id": user_id}


def add_user(db, user_id: str, name=None, first_name=None, image_url=None) -> User:
    user = User(id=user_id, name=name, first_name=first_name, image_url=image_url)
    db.add(user)
    db.commit()
    return user


def block(db, blocker_id: str, blocked_id: str) -> None:
    db.add(UserBlock(blocker_id=blocker_id, blocked_id=blocked_id))
    db.commit()
