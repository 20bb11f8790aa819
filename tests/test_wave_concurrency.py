"""
동시 join 경쟁: 여러 스레드가 동시에 임계 인원을 넘겨도 언락은 웨이브당 1회, 채팅도 1개.

in-memory DB는 커넥션 하나를 공유하므로 파일 기반 SQLite + 스레드별 세션으로 실행.
"""

import threading

import pytest
from sqlalchemy.orm import sessionmaker

from conftest import T0
from crewup.crud.wave_crud import create_wave, join_wave
from crewup.database import build_engine
from crewup.errors import CrewUpError
from crewup.models import Base
from crewup.models.activity import ActivityType
from crewup.models.crew import CrewChat, CrewChatMember
from crewup.models.wave import WaveActivity, WaveParticipant

JOINERS = 8


@pytest.fixture
def file_session_factory(tmp_path):
    engine = build_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        begin_immediate=True,
        connect_args={"timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


def _run_concurrent_joins(factory, wave_id, user_ids):
    barrier = threading.Barrier(len(user_ids))
    results, errors = [], []
    lock = threading.Lock()

    def worker(user_id):
        session = factory()
        try:
            barrier.wait()
            result = join_wave(session, wave_id, user_id, now=T0)
            session.commit()
            with lock:
                results.append(result)
        except CrewUpError as e:
            session.rollback()
            with lock:
                errors.append(e)
        finally:
            session.close()

    threads = [threading.Thread(target=worker, args=(uid,)) for uid in user_ids]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)
    return results, errors


@pytest.mark.parametrize("threshold", [2, 3, JOINERS])
def test_racing_joins_unlock_exactly_once(file_session_factory, threshold):
    setup = file_session_factory()
    wave = create_wave(setup, "host", ActivityType.RUN, "Han River", 37.0, 127.0, threshold=threshold, now=T0)
    setup.commit()
    wave_id = wave.id
    setup.close()

    user_ids = [f"u{i}" for i in range(JOINERS)]
    results, errors = _run_concurrent_joins(file_session_factory, wave_id, user_ids)

    assert errors == []
    assert len(results) == JOINERS
    assert sum(1 for r in results if r.unlocked_now) == 1

    check = file_session_factory()
    try:
        wave = check.query(WaveActivity).filter(WaveActivity.id == wave_id).one()
        assert wave.unlocked is True
        assert check.query(CrewChat).count() == 1
        assert wave.chat_id == check.query(CrewChat.id).scalar()

        participants = {uid for (uid,) in check.query(WaveParticipant.user_id).all()}
        members = {
            uid
            for (uid,) in check.query(CrewChatMember.user_id).filter(CrewChatMember.chat_id == wave.chat_id).all()
        }
        assert participants == set(user_ids)
        assert members == participants
        # 모든 응답이 같은 채팅을 가리킴 (언락 이후 join 포함)
        assert {r.chat_id for r in results if r.unlocked} == {wave.chat_id}
    finally:
        check.close()
