"""버디 매치 테스트: 쌍당 매치 1개(방향 무관), 상대 상태 만료 시 거부, 매치와 1:1 채팅 동시 생성."""

from datetime import timedelta

import pytest

from conftest import T0
from crewup.crud.buddy_crud import create_match, find_match, list_matches
from crewup.crud.crew_crud import list_members
from crewup.crud.presence_crud import set_status
from crewup.errors import AlreadyMatchedError, ConflictError, ExpiredError, SelfMatchError, ValidationError
from crewup.models.activity import ActivityType
from crewup.models.buddy import BuddyMatch
from crewup.models.crew import ChatKind, CrewChat


def _broadcast(db, user_id, when=T0):
    set_status(db, user_id, ActivityType.RUN, None, 37.0, 127.0, now=when)
    db.commit()


def test_match_creates_buddy_chat_with_both_users(db):
    _broadcast(db, "bob")
    match = create_match(db, "alice", "bob", ActivityType.RUN, now=T0 + timedelta(minutes=5))
    db.commit()

    assert match.user_low == "alice" and match.user_high == "bob"
    chat = db.query(CrewChat).filter(CrewChat.id == match.chat_id).one()
    assert chat.kind == ChatKind.BUDDY.value
    assert [m.user_id for m in list_members(db, chat.id)] == ["alice", "bob"]


def test_reverse_direction_is_conflict(db):
    _broadcast(db, "bob")
    _broadcast(db, "alice")
    create_match(db, "alice", "bob", ActivityType.RUN, now=T0)
    db.commit()

    with pytest.raises(AlreadyMatchedError) as exc_info:
        create_match(db, "bob", "alice", ActivityType.RUN, now=T0)
    assert isinstance(exc_info.value, ConflictError)
    assert exc_info.value.status_code == 409
    db.rollback()
    assert db.query(BuddyMatch).count() == 1
    assert db.query(CrewChat).count() == 1


def test_reverse_direction_conflicts_without_initiator_status(db):
    """처음 매치를 건 쪽에 상태가 없어도 역방향 매치는 만료가 아니라 Conflict."""
    _broadcast(db, "bob")
    create_match(db, "alice", "bob", ActivityType.RUN, now=T0)
    db.commit()

    with pytest.raises(ConflictError):
        create_match(db, "bob", "alice", ActivityType.RUN, now=T0)
    db.rollback()
    assert db.query(BuddyMatch).count() == 1


def test_self_match_rejected(db):
    _broadcast(db, "alice")
    with pytest.raises(SelfMatchError) as exc_info:
        create_match(db, "alice", "alice", ActivityType.RUN, now=T0)
    assert isinstance(exc_info.value, ValidationError)


def test_expired_recipient_status(db):
    _broadcast(db, "bob")
    with pytest.raises(ExpiredError):
        create_match(db, "alice", "bob", ActivityType.RUN, now=T0 + timedelta(hours=2))
    assert db.query(CrewChat).count() == 0


def test_recipient_without_status(db):
    with pytest.raises(ExpiredError):
        create_match(db, "alice", "bob", ActivityType.RUN, now=T0)


def test_list_matches_reports_other_user(db):
    _broadcast(db, "bob")
    _broadcast(db, "alice")
    create_match(db, "alice", "bob", ActivityType.RUN, now=T0)
    create_match(db, "carol", "alice", ActivityType.RUN, now=T0 + timedelta(minutes=1))
    db.commit()

    views = list_matches(db, "alice")
    assert [v.other_user_id for v in views] == ["carol", "bob"]
    assert find_match(db, "bob", "alice") is not None
