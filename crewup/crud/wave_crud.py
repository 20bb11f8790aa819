# 웨이브 CRUD: 생성/참여/취소/삭제/조회 + 임계 인원 도달 시 크루 채팅 언락 (웨이브당 정확히 1회)

from datetime import datetime, timedelta
from typing import List, NamedTuple, Optional

from loguru import logger
from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from crewup.core.clock import as_utc, is_expired, resolve_now
from crewup.core.config import (
    AREA_MAX_LENGTH,
    DEFAULT_RADIUS_KM,
    LOCATION_NAME_MAX_LENGTH,
    MAX_RADIUS_KM,
    NEARBY_LIMIT,
    NOTE_MAX_LENGTH,
    WAVE_THRESHOLD,
    WAVE_TTL_HOURS,
)
from crewup.crud.crew_crud import add_members, create_chat, delete_chat, delete_chat_contents
from crewup.crud.validation import clean_optional_text, require_activity_type, require_coordinates
from crewup.errors import (
    ConflictError,
    ExpiredError,
    ForbiddenError,
    NotAParticipantError,
    NotFoundError,
    ValidationError,
)
from crewup.integrations.directory import Profile, get_blocked_user_ids, lookup_profiles
from crewup.models.activity import ActivityType
from crewup.models.crew import ChatKind, CrewChatMember
from crewup.models.wave import WaveActivity, WaveParticipant
from crewup.services.geo import bounding_box, distance_km
from crewup.services.wave_status import WaveStatus, check_status_transition, derive_status, stored_status

WAVE_TTL = timedelta(hours=WAVE_TTL_HOURS)
MIN_THRESHOLD = 2


class JoinResult(NamedTuple):
    already_joined: bool
    participant_count: Optional[int] = None
    unlocked: Optional[bool] = None
    chat_id: Optional[int] = None
    # 이번 join이 언락을 일으켰는지 (실시간 이벤트 발행용)
    unlocked_now: bool = False


class WaveDetail(NamedTuple):
    wave: WaveActivity
    status: str
    participant_count: int
    creator: Profile
    is_creator: bool
    has_joined: bool
    # 언락 전에는 None (인원 수만 공개)
    participants: Optional[List[Profile]]


class NearbyWave(NamedTuple):
    wave: WaveActivity
    status: str
    participant_count: int
    distance_km: float
    creator: Profile


def count_participants(db: Session, wave_id: int) -> int:
    return (
        db.query(func.count(WaveParticipant.id))
        .filter(WaveParticipant.wave_id == wave_id)
        .scalar()
        or 0
    )


def _lock_wave(db: Session, wave_id: int) -> WaveActivity:
    """FOR UPDATE로 웨이브 행 잠금 → 같은 웨이브에 대한 동시 join/leave/delete 직렬화."""
    wave = (
        db.query(WaveActivity)
        .filter(WaveActivity.id == wave_id)
        .with_for_update()
        .first()
    )
    if wave is None:
        raise NotFoundError("Wave not found")
    return wave


def create_wave(
    db: Session,
    creator_id: str,
    activity_type,
    area: str,
    lat: float,
    lng: float,
    threshold: int = WAVE_THRESHOLD,
    ttl: timedelta = WAVE_TTL,
    scheduled_for: Optional[datetime] = None,
    note: Optional[str] = None,
    location_name: Optional[str] = None,
    now: Optional[datetime] = None,
) -> WaveActivity:
    """
    웨이브 생성 (PROPOSED 상태). 생성자는 participants에 넣지 않음 (암묵적 멤버).

    ⚠️ commit 하지 않음. 호출자가 트랜잭션 제어.
    """
    activity = require_activity_type(activity_type)
    area = clean_optional_text(area, "area", AREA_MAX_LENGTH)
    if area is None:
        raise ValidationError("area is required")
    require_coordinates(lat, lng)
    if threshold is None or threshold < MIN_THRESHOLD:
        raise ValidationError(f"threshold must be at least {MIN_THRESHOLD}")
    if ttl is None or ttl <= timedelta(0):
        raise ValidationError("ttl must be positive")
    note = clean_optional_text(note, "note", NOTE_MAX_LENGTH)
    location_name = clean_optional_text(location_name, "location_name", LOCATION_NAME_MAX_LENGTH)
    now = resolve_now(now)
    scheduled_for = as_utc(scheduled_for)
    if scheduled_for is not None and scheduled_for < now:
        raise ValidationError("scheduled_for must be in the future")

    wave = WaveActivity(
        creator_id=creator_id,
        activity_type=activity.value,
        area=area,
        location_name=location_name,
        lat=lat,
        lng=lng,
        scheduled_for=scheduled_for,
        note=note,
        threshold=threshold,
        started_at=now,
        expires_at=now + ttl,
        unlocked=False,
        chat_id=None,
    )
    db.add(wave)
    db.flush()
    logger.info(
        f"wave created: id={wave.id} creator={creator_id} activity={activity.value} threshold={threshold}"
    )
    return wave


def _unlock(db: Session, wave: WaveActivity, now: datetime) -> tuple[int, bool]:
    """
    크루 채팅 생성 + 웨이브 언락. join 트랜잭션 안에서만 호출.

    - 조건부 UPDATE (unlocked = false 인 경우에만) → 영향 행이 1일 때만 이 트랜잭션이 언락한 것
    - 0이면 다른 트랜잭션이 이미 언락: 방금 만든 채팅을 같은 트랜잭션에서 지우고 기존 chat_id 반환
    - 멤버는 UPDATE 성공 후 현재 참여 명단 전체를 스냅샷해서 일괄 추가
    반환: (웨이브의 chat_id, 이 트랜잭션이 언락했는지)
    """
    transition_error = check_status_transition(stored_status(wave.unlocked), WaveStatus.UNLOCKED.value)
    if transition_error:
        raise ConflictError(transition_error)

    chat = create_chat(db, ChatKind.WAVE, wave.activity_type, wave.area, now=now)
    result = db.execute(
        update(WaveActivity)
        .where(WaveActivity.id == wave.id, WaveActivity.unlocked.is_(False))
        .values(unlocked=True, chat_id=chat.id)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        delete_chat(db, chat.id)
        db.refresh(wave)
        logger.info(f"wave already unlocked by a concurrent join: id={wave.id} chat={wave.chat_id}")
        return wave.chat_id, False

    roster = [
        uid
        for (uid,) in db.query(WaveParticipant.user_id)
        .filter(WaveParticipant.wave_id == wave.id)
        .order_by(WaveParticipant.joined_at.asc(), WaveParticipant.id.asc())
        .all()
    ]
    add_members(db, chat.id, roster, now=now)
    db.refresh(wave)
    logger.info(f"wave unlocked: id={wave.id} chat={chat.id} members={len(roster)}")
    return chat.id, True


def join_wave(db: Session, wave_id: int, user_id: str, now: Optional[datetime] = None) -> JoinResult:
    """
    웨이브 참여. 하나의 트랜잭션으로 실행되어야 함.

    1) FOR UPDATE로 웨이브 잠금, 만료 확인
    2) 생성자/기존 참여자면 already_joined (쓰기 없음)
    3) 참여 행 insert → flush
    4) 같은 트랜잭션에서 insert 이후 인원 재집계 (insert 전에 본 값은 절대 재사용하지 않음)
    5) 아직 PROPOSED이고 인원 >= threshold면 언락, 이미 UNLOCKED면 채팅 멤버로만 추가

    ⚠️ 이 함수는 commit/rollback 하지 않음. 호출자(라우터)가 트랜잭션을 제어.
    """
    now = resolve_now(now)
    wave = _lock_wave(db, wave_id)
    if is_expired(wave.expires_at, now):
        raise ExpiredError("Wave has expired")

    if wave.creator_id == user_id:
        return JoinResult(already_joined=True)
    existing = (
        db.query(WaveParticipant.id)
        .filter(WaveParticipant.wave_id == wave_id, WaveParticipant.user_id == user_id)
        .first()
    )
    if existing is not None:
        return JoinResult(already_joined=True)

    try:
        db.add(WaveParticipant(wave_id=wave_id, user_id=user_id, joined_at=now))
        db.flush()
    except IntegrityError:
        # 동시에 같은 user가 join하면 UniqueConstraint 위반 가능. rollback은 호출자에서 수행
        raise ConflictError("Already joined this wave")

    # 쓰기 이후 최신 상태 (잠금을 지원하지 않는 DB에서도 이 시점부터는 다른 쓰기가 끼어들 수 없음)
    db.refresh(wave)
    participant_count = count_participants(db, wave_id)

    chat_id = wave.chat_id
    unlocked = bool(wave.unlocked)
    unlocked_now = False
    if unlocked:
        # 언락 이후 참여자는 바로 크루 채팅 멤버로 추가
        add_members(db, chat_id, [user_id], now=now)
    elif participant_count >= wave.threshold:
        chat_id, unlocked_now = _unlock(db, wave, now)
        unlocked = True

    logger.info(f"wave joined: id={wave_id} user={user_id} count={participant_count} unlocked={unlocked}")
    return JoinResult(
        already_joined=False,
        participant_count=participant_count,
        unlocked=unlocked,
        chat_id=chat_id,
        unlocked_now=unlocked_now,
    )


def leave_wave(db: Session, wave_id: int, user_id: str) -> int:
    """
    웨이브 참여 취소.

    - 생성자는 떠날 수 없음 (ForbiddenError)
    - 언락된 웨이브면 크루 채팅 멤버십도 삭제. unlocked/chat_id는 절대 되돌리지 않음
    반환: 갱신된 참여 인원

    ⚠️ 이 함수는 commit/rollback 하지 않음. 호출자(라우터)가 트랜잭션을 제어.
    """
    wave = _lock_wave(db, wave_id)
    if wave.creator_id == user_id:
        raise ForbiddenError("Creator cannot leave their own wave")

    participation = (
        db.query(WaveParticipant)
        .filter(WaveParticipant.wave_id == wave_id, WaveParticipant.user_id == user_id)
        .first()
    )
    if participation is None:
        raise NotAParticipantError("Not joined")

    db.delete(participation)
    if wave.unlocked and wave.chat_id is not None:
        db.query(CrewChatMember).filter(
            CrewChatMember.chat_id == wave.chat_id,
            CrewChatMember.user_id == user_id,
        ).delete(synchronize_session=False)
    db.flush()

    participant_count = count_participants(db, wave_id)
    logger.info(f"wave left: id={wave_id} user={user_id} count={participant_count}")
    return participant_count


def delete_wave(db: Session, wave_id: int, requester_id: str) -> Optional[int]:
    """
    웨이브 삭제 (생성자만).

    순서: 채팅 메시지 → 채팅 멤버 → 참여 행 → 웨이브의 chat_id 분리 → 채팅 → 웨이브
    반환: 함께 삭제된 chat_id (없으면 None)
    """
    wave = _lock_wave(db, wave_id)
    if wave.creator_id != requester_id:
        raise ForbiddenError("Only the creator can delete this wave")

    chat_id = wave.chat_id
    if chat_id is not None:
        delete_chat_contents(db, chat_id)
    db.query(WaveParticipant).filter(WaveParticipant.wave_id == wave_id).delete(synchronize_session=False)
    if chat_id is not None:
        wave.chat_id = None
        db.flush()
        delete_chat(db, chat_id)
    db.delete(wave)
    db.flush()
    logger.info(f"wave deleted: id={wave_id} chat={chat_id}")
    return chat_id


def get_wave(db: Session, wave_id: int, requester_id: str, now: Optional[datetime] = None) -> WaveDetail:
    """
    웨이브 상세. 언락 전에는 참여자 신원을 숨기고 인원 수만 공개 (프라이버시 기본값).
    """
    wave = db.query(WaveActivity).filter(WaveActivity.id == wave_id).first()
    if wave is None:
        raise NotFoundError("Wave not found")

    participant_ids = [
        uid
        for (uid,) in db.query(WaveParticipant.user_id)
        .filter(WaveParticipant.wave_id == wave_id)
        .order_by(WaveParticipant.joined_at.asc(), WaveParticipant.id.asc())
        .all()
    ]
    profiles = lookup_profiles(db, participant_ids + [wave.creator_id])
    participants = [profiles[uid] for uid in participant_ids] if wave.unlocked else None

    return WaveDetail(
        wave=wave,
        status=derive_status(wave.unlocked, wave.expires_at, now),
        participant_count=len(participant_ids),
        creator=profiles[wave.creator_id],
        is_creator=wave.creator_id == requester_id,
        has_joined=requester_id in participant_ids,
        participants=participants,
    )


def list_nearby_waves(
    db: Session,
    requester_id: str,
    lat: float,
    lng: float,
    radius_km: float = DEFAULT_RADIUS_KM,
    limit: int = NEARBY_LIMIT,
    activity_type=None,
    now: Optional[datetime] = None,
) -> List[NearbyWave]:
    """
    반경 내 만료되지 않은 웨이브 (최신 순). BBox 선필터 → haversine.
    차단 관계인 사용자가 만든 웨이브는 제외. activity_type 지정 시 정확히 일치하는 것만.
    """
    require_coordinates(lat, lng)
    if radius_km is None or radius_km <= 0:
        raise ValidationError("radius_km must be positive")
    if limit is None or limit < 1:
        raise ValidationError("limit must be at least 1")
    radius_km = min(radius_km, MAX_RADIUS_KM)
    wanted: Optional[ActivityType] = require_activity_type(activity_type) if activity_type is not None else None
    now = resolve_now(now)

    box = bounding_box(lat, lng, radius_km)
    q = db.query(WaveActivity).filter(
        WaveActivity.expires_at > now,
        WaveActivity.lat >= box.min_lat,
        WaveActivity.lat <= box.max_lat,
    )
    if box.min_lng is not None:
        q = q.filter(WaveActivity.lng >= box.min_lng, WaveActivity.lng <= box.max_lng)
    if wanted is not None:
        q = q.filter(WaveActivity.activity_type == wanted.value)
    blocked = get_blocked_user_ids(db, requester_id)
    if blocked:
        q = q.filter(WaveActivity.creator_id.notin_(blocked))
    candidates = q.order_by(WaveActivity.started_at.desc(), WaveActivity.id.desc()).all()

    in_radius = []
    for wave in candidates:
        dist = distance_km(lat, lng, wave.lat, wave.lng)
        if dist <= radius_km:
            in_radius.append((wave, dist))
        if len(in_radius) >= limit:
            break
    if not in_radius:
        return []

    wave_ids = [w.id for w, _ in in_radius]
    counts = dict(
        db.query(WaveParticipant.wave_id, func.count(WaveParticipant.id))
        .filter(WaveParticipant.wave_id.in_(wave_ids))
        .group_by(WaveParticipant.wave_id)
        .all()
    )
    profiles = lookup_profiles(db, [w.creator_id for w, _ in in_radius])
    return [
        NearbyWave(
            wave=w,
            status=derive_status(w.unlocked, w.expires_at, now),
            participant_count=counts.get(w.id, 0),
            distance_km=d,
            creator=profiles[w.creator_id],
        )
        for w, d in in_radius
    ]
