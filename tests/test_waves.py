"""웨이브 테스트: 임계 인원 도달 시 정확히 1회 언락, leave/delete 규칙, 조회 시 프라이버시."""

from datetime import timedelta, timezone

import pytest

from conftest import T0, add_user, block
from crewup.core.clock import as_utc
from crewup.crud.crew_crud import is_member, list_members, post_message
from crewup.crud.wave_crud import (
    WAVE_TTL,
    create_wave,
    delete_wave,
    get_wave,
    join_wave,
    leave_wave,
    list_nearby_waves,
)
from crewup.errors import (
    ExpiredError,
    ForbiddenError,
    NotAParticipantError,
    NotFoundError,
    ValidationError,
)
from crewup.models.activity import ActivityType
from crewup.models.crew import ChatKind, CrewChat, CrewChatMember, CrewMessage
from crewup.models.wave import WaveActivity, WaveParticipant
from crewup.services.wave_status import WaveStatus, check_status_transition


def _wave(db, creator="host", threshold=3, lat=37.0, lng=127.0, activity=ActivityType.RUN, now=T0):
    wave = create_wave(db, creator, activity, "Han River", lat, lng, threshold=threshold, now=now)
    db.commit()
    return wave


def _join(db, wave_id, user_id, now=T0):
    result = join_wave(db, wave_id, user_id, now=now)
    db.commit()
    return result


class TestCreate:
    def test_starts_proposed_without_creator_row(self, db):
        wave = _wave(db)
        assert wave.unlocked is False and wave.chat_id is None
        assert as_utc(wave.expires_at) == T0 + WAVE_TTL
        assert WAVE_TTL == timedelta(hours=8)
        assert db.query(WaveParticipant).count() == 0

    def test_non_utc_times_are_stored_as_utc(self, db):
        kst = timezone(timedelta(hours=9))
        wave = create_wave(
            db,
            "host",
            ActivityType.RUN,
            "Han River",
            37.0,
            127.0,
            scheduled_for=(T0 + timedelta(hours=1)).astimezone(kst),
            now=T0.astimezone(kst),
        )
        db.commit()
        db.expire_all()

        assert as_utc(wave.expires_at) == T0 + WAVE_TTL
        assert as_utc(wave.scheduled_for) == T0 + timedelta(hours=1)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"lat": 91.0},
            {"threshold": 1},
            {"area": "   "},
            {"activity_type": "SKYDIVING"},
            {"note": "x" * 141},
            {"scheduled_for": T0 - timedelta(minutes=1)},
        ],
    )
    def test_validation(self, db, kwargs):
        args = dict(activity_type=ActivityType.RUN, area="Park", lat=37.0, lng=127.0)
        args.update(kwargs)
        with pytest.raises(ValidationError):
            create_wave(db, "host", now=T0, **args)
        assert db.query(WaveActivity).count() == 0


class TestJoin:
    def test_unlocks_at_threshold(self, db):
        wave = _wave(db, threshold=3)

        r1 = _join(db, wave.id, "u1")
        r2 = _join(db, wave.id, "u2")
        assert (r1.participant_count, r1.unlocked) == (1, False)
        assert (r2.participant_count, r2.unlocked, r2.chat_id) == (2, False, None)

        r3 = _join(db, wave.id, "u3")
        assert r3.participant_count == 3
        assert r3.unlocked is True and r3.unlocked_now is True
        assert r3.chat_id is not None

        db.refresh(wave)
        assert wave.unlocked is True and wave.chat_id == r3.chat_id
        chat = db.query(CrewChat).filter(CrewChat.id == wave.chat_id).one()
        assert chat.kind == ChatKind.WAVE.value
        assert chat.area == "Han River"
        assert {m.user_id for m in list_members(db, chat.id)} == {"u1", "u2", "u3"}

    def test_late_joiner_added_to_chat(self, db):
        wave = _wave(db, threshold=2)
        _join(db, wave.id, "u1")
        unlocked = _join(db, wave.id, "u2")

        late = _join(db, wave.id, "u3")
        assert late.unlocked is True and late.unlocked_now is False
        assert late.chat_id == unlocked.chat_id
        assert is_member(db, unlocked.chat_id, "u3")
        assert db.query(CrewChat).count() == 1

    def test_duplicate_join_is_reported(self, db):
        wave = _wave(db)
        _join(db, wave.id, "u1")
        again = _join(db, wave.id, "u1")
        assert again.already_joined is True
        assert db.query(WaveParticipant).count() == 1

    def test_creator_join_is_noop(self, db):
        wave = _wave(db)
        assert _join(db, wave.id, "host").already_joined is True
        assert db.query(WaveParticipant).count() == 0

    def test_expiry_boundary(self, db):
        wave = _wave(db)
        _join(db, wave.id, "u1", now=T0 + WAVE_TTL - timedelta(seconds=1))
        with pytest.raises(ExpiredError):
            join_wave(db, wave.id, "u2", now=T0 + WAVE_TTL)
        db.rollback()
        assert db.query(WaveParticipant).count() == 1

    def test_missing_wave(self, db):
        with pytest.raises(NotFoundError):
            join_wave(db, 12345, "u1", now=T0)


class TestLeave:
    def test_leave_after_unlock_keeps_chat(self, db):
        wave = _wave(db, threshold=3)
        for uid in ("u1", "u2", "u3"):
            _join(db, wave.id, uid)
        chat_id = wave.chat_id

        remaining = leave_wave(db, wave.id, "u2")
        db.commit()
        assert remaining == 2

        db.refresh(wave)
        assert wave.unlocked is True and wave.chat_id == chat_id
        assert {m.user_id for m in list_members(db, chat_id)} == {"u1", "u3"}

    def test_leave_before_unlock(self, db):
        wave = _wave(db)
        _join(db, wave.id, "u1")
        assert leave_wave(db, wave.id, "u1") == 0
        db.commit()
        assert db.query(WaveParticipant).count() == 0

    def test_creator_cannot_leave(self, db):
        wave = _wave(db)
        with pytest.raises(ForbiddenError):
            leave_wave(db, wave.id, "host")

    def test_not_joined(self, db):
        wave = _wave(db)
        with pytest.raises(NotAParticipantError) as exc_info:
            leave_wave(db, wave.id, "u9")
        assert exc_info.value.status_code == 404


class TestDelete:
    def test_cascades_chat_and_roster(self, db):
        wave = _wave(db, threshold=2)
        _join(db, wave.id, "u1")
        result = _join(db, wave.id, "u2")
        post_message(db, result.chat_id, "u1", "where are we meeting?", now=T0)
        db.commit()

        deleted_chat_id = delete_wave(db, wave.id, "host")
        db.commit()

        assert deleted_chat_id == result.chat_id
        assert db.query(WaveActivity).count() == 0
        assert db.query(WaveParticipant).count() == 0
        assert db.query(CrewChat).count() == 0
        assert db.query(CrewChatMember).count() == 0
        assert db.query(CrewMessage).count() == 0

    def test_proposed_wave(self, db):
        wave = _wave(db)
        _join(db, wave.id, "u1")
        assert delete_wave(db, wave.id, "host") is None
        db.commit()
        assert db.query(WaveActivity).count() == 0

    def test_non_creator_forbidden(self, db):
        wave = _wave(db)
        with pytest.raises(ForbiddenError):
            delete_wave(db, wave.id, "u1")


class TestGet:
    def test_participants_hidden_until_unlock(self, db):
        add_user(db, "u1", first_name="Jiwoo")
        wave = _wave(db, threshold=2)
        _join(db, wave.id, "u1")

        detail = get_wave(db, wave.id, "u1", now=T0)
        assert detail.status == WaveStatus.PROPOSED.value
        assert detail.participant_count == 1
        assert detail.participants is None
        assert detail.has_joined is True and detail.is_creator is False

        _join(db, wave.id, "u2")
        detail = get_wave(db, wave.id, "host", now=T0)
        assert detail.status == WaveStatus.UNLOCKED.value
        assert [p.display_name for p in detail.participants] == ["Jiwoo", "Anonymous"]
        assert detail.is_creator is True

    def test_expired_status_is_derived(self, db):
        wave = _wave(db)
        assert get_wave(db, wave.id, "u1", now=T0 + WAVE_TTL).status == WaveStatus.EXPIRED.value


class TestNearby:
    def test_filters(self, db):
        near = _wave(db, creator="h1", lat=37.01, now=T0)
        newer = _wave(db, creator="h2", lat=37.02, now=T0 + timedelta(minutes=10))
        _wave(db, creator="h3", lat=38.0, now=T0)  # 100km 이상
        _wave(db, creator="h4", lat=37.01, activity=ActivityType.YOGA, now=T0)
        _wave(db, creator="blocked", lat=37.01, now=T0)
        _wave(db, creator="h5", lat=37.01, now=T0 - timedelta(hours=9))  # 만료
        block(db, "me", "blocked")
        _join(db, near.id, "u1")

        rows = list_nearby_waves(db, "me", 37.0, 127.0, radius_km=5, activity_type="RUN", now=T0 + timedelta(hours=1))
        assert [r.wave.id for r in rows] == [newer.id, near.id]
        assert rows[1].participant_count == 1
        assert rows[1].distance_km < 5

    def test_without_activity_filter(self, db):
        _wave(db, creator="h1", activity=ActivityType.RUN)
        _wave(db, creator="h2", activity=ActivityType.YOGA)
        assert len(list_nearby_waves(db, "me", 37.0, 127.0, now=T0)) == 2


def test_unlocked_wave_cannot_unlock_again():
    assert check_status_transition("PROPOSED", "UNLOCKED") is None
    assert check_status_transition("UNLOCKED", "UNLOCKED") is not None
