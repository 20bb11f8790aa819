"""크루 채팅 테스트: 멤버만 작성/조회, trim 후 1~500자, 시간순, 차단 필터."""

from datetime import timedelta

import pytest

from conftest import T0, add_user, block
from crewup.core.clock import as_utc
from crewup.crud.crew_crud import (
    create_chat,
    delete_chat,
    get_messages,
    is_member,
    list_members,
    list_my_chats,
    post_message,
)
from crewup.errors import ForbiddenError, NotFoundError, ValidationError
from crewup.models.crew import ChatKind, CrewChat, CrewChatMember, CrewMessage


@pytest.fixture
def chat(db):
    chat = create_chat(db, ChatKind.WAVE, "RUN", "Han River", member_ids=["a", "b", "c", "a"], now=T0)
    db.commit()
    return chat


class TestMembers:
    def test_duplicates_added_once(self, db, chat):
        assert [m.user_id for m in list_members(db, chat.id)] == ["a", "b", "c"]

    def test_display_name_fallback(self, db, chat):
        add_user(db, "a", name="Alice Park", first_name="Alice")
        add_user(db, "b", name="Bob Lee")
        names = {m.user_id: m.profile.display_name for m in list_members(db, chat.id)}
        assert names == {"a": "Alice", "b": "Bob Lee", "c": "Anonymous"}

    def test_missing_chat(self, db):
        with pytest.raises(NotFoundError):
            list_members(db, 999)


class TestPostMessage:
    def test_max_length_is_inclusive(self, db, chat):
        view = post_message(db, chat.id, "a", "x" * 500, now=T0)
        assert len(view.message.content) == 500

    def test_over_max_length(self, db, chat):
        with pytest.raises(ValidationError):
            post_message(db, chat.id, "a", "x" * 501, now=T0)

    def test_length_checked_after_trim(self, db, chat):
        view = post_message(db, chat.id, "a", "  " + "x" * 500 + "  ", now=T0)
        assert view.message.content == "x" * 500

    @pytest.mark.parametrize("content", ["", "   ", "\n\t"])
    def test_blank_rejected(self, db, chat, content):
        with pytest.raises(ValidationError):
            post_message(db, chat.id, "a", content, now=T0)
        assert db.query(CrewMessage).count() == 0

    def test_non_member_forbidden(self, db, chat):
        with pytest.raises(ForbiddenError):
            post_message(db, chat.id, "stranger", "hi", now=T0)

    def test_updates_last_message_at(self, db, chat):
        sent_at = T0 + timedelta(minutes=7)
        post_message(db, chat.id, "b", "on my way", now=sent_at)
        db.commit()
        db.refresh(chat)
        assert as_utc(chat.last_message_at) == sent_at


class TestGetMessages:
    def test_chronological_and_limited(self, db, chat):
        for i in range(5):
            post_message(db, chat.id, "a", f"m{i}", now=T0 + timedelta(seconds=i))
        db.commit()

        assert [v.message.content for v in get_messages(db, chat.id, "b")] == ["m0", "m1", "m2", "m3", "m4"]
        # 최근 2개를 시간순으로
        assert [v.message.content for v in get_messages(db, chat.id, "b", limit=2)] == ["m3", "m4"]

    def test_blocked_senders_filtered(self, db, chat):
        post_message(db, chat.id, "a", "from a", now=T0)
        post_message(db, chat.id, "b", "from b", now=T0 + timedelta(seconds=1))
        post_message(db, chat.id, "c", "from c", now=T0 + timedelta(seconds=2))
        db.commit()
        block(db, "c", "a")

        assert [v.message.sender_id for v in get_messages(db, chat.id, "a")] == ["a", "b"]
        assert [v.message.sender_id for v in get_messages(db, chat.id, "c")] == ["b", "c"]
        assert len(get_messages(db, chat.id, "b")) == 3

    def test_non_member_forbidden(self, db, chat):
        with pytest.raises(ForbiddenError):
            get_messages(db, chat.id, "stranger")


class TestListMyChats:
    def test_sorted_by_latest_activity(self, db):
        quiet = create_chat(db, ChatKind.BUDDY, "YOGA", None, member_ids=["a", "z"], now=T0 + timedelta(hours=1))
        busy = create_chat(db, ChatKind.WAVE, "RUN", "Park", member_ids=["a", "b", "c"], now=T0)
        create_chat(db, ChatKind.WAVE, "GYM", "Gym", member_ids=["b"], now=T0)
        post_message(db, busy.id, "b", "see you at 7", now=T0 + timedelta(hours=2))
        db.commit()

        summaries = list_my_chats(db, "a")
        assert [s.chat.id for s in summaries] == [busy.id, quiet.id]
        assert summaries[0].member_count == 3
        assert summaries[0].last_message.message.content == "see you at 7"
        assert summaries[1].last_message is None

    def test_empty(self, db):
        assert list_my_chats(db, "nobody") == []


def test_delete_chat_removes_children(db, chat):
    chat_id = chat.id
    post_message(db, chat_id, "a", "bye", now=T0)
    db.commit()

    delete_chat(db, chat_id)
    db.commit()
    assert db.query(CrewChat).count() == 0
    assert db.query(CrewChatMember).count() == 0
    assert db.query(CrewMessage).count() == 0
    assert not is_member(db, chat_id, "a")
