# 상태(I'm down) CRUD + 근처 상태 검색 (BBox 선필터 → haversine 정밀 판정)

from datetime import datetime, timedelta
from typing import List, NamedTuple, Optional

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from crewup.core.clock import as_utc, resolve_now
from crewup.core.config import DEFAULT_RADIUS_KM, MAX_RADIUS_KM, NEARBY_LIMIT, NOTE_MAX_LENGTH, STATUS_TTL_HOURS
from crewup.crud.validation import clean_optional_text, require_activity_type, require_coordinates
from crewup.errors import ConflictError, ValidationError
from crewup.integrations.directory import Profile, get_blocked_user_ids, lookup_profiles
from crewup.models.activity import ActivityType
from crewup.models.presence import PresenceBroadcast
from crewup.services.geo import bounding_box, distance_km

STATUS_TTL = timedelta(hours=STATUS_TTL_HOURS)


class NearbyBroadcast(NamedTuple):
    broadcast: PresenceBroadcast
    distance_km: float
    profile: Profile


def set_status(
    db: Session,
    owner_id: str,
    activity_type,
    note: Optional[str],
    lat: float,
    lng: float,
    now: Optional[datetime] = None,
) -> PresenceBroadcast:
    """
    상태 설정(upsert). 사용자당 1개만 유지: 기존 행이 있으면 그 자리에서 덮어쓰고 expires_at을 now+TTL로 리셋.

    ⚠️ commit 하지 않음 (flush만). 호출자가 트랜잭션 제어.
    """
    require_coordinates(lat, lng)
    activity = require_activity_type(activity_type)
    note = clean_optional_text(note, "note", NOTE_MAX_LENGTH)
    now = resolve_now(now)

    status = db.query(PresenceBroadcast).filter(PresenceBroadcast.user_id == owner_id).first()
    if status is None:
        status = PresenceBroadcast(user_id=owner_id)
        db.add(status)

    status.activity_type = activity.value
    status.note = note
    status.lat = lat
    status.lng = lng
    status.set_at = now
    status.expires_at = now + STATUS_TTL
    try:
        db.flush()
    except IntegrityError:
        # 같은 사용자의 첫 상태 설정이 동시에 들어오면 user_id UNIQUE 위반. rollback은 호출자에서 수행
        raise ConflictError("Status was updated concurrently, please retry")

    logger.info(f"status set: user={owner_id} activity={activity.value} expires_at={status.expires_at.isoformat()}")
    return status


def get_status(db: Session, owner_id: str, now: Optional[datetime] = None) -> Optional[PresenceBroadcast]:
    """만료되지 않은(expires_at > now) 상태만 반환. 만료 행은 삭제하지 않고 없는 것으로 취급."""
    now = resolve_now(now)
    status = db.query(PresenceBroadcast).filter(PresenceBroadcast.user_id == owner_id).first()
    if status is None or as_utc(status.expires_at) <= now:
        return None
    return status


def clear_status(db: Session, owner_id: str) -> bool:
    """상태 해제. 멱등: 없어도 에러 아님. 반환: 삭제된 행이 있었는지."""
    deleted = (
        db.query(PresenceBroadcast)
        .filter(PresenceBroadcast.user_id == owner_id)
        .delete(synchronize_session=False)
    )
    db.flush()
    if deleted:
        logger.info(f"status cleared: user={owner_id}")
    return bool(deleted)


def find_nearby(
    db: Session,
    requester_id: str,
    lat: float,
    lng: float,
    radius_km: float = DEFAULT_RADIUS_KM,
    limit: int = NEARBY_LIMIT,
    activity_type=None,
    now: Optional[datetime] = None,
) -> List[NearbyBroadcast]:
    """
    반경 내 다른 사용자들의 유효 상태를 가까운 순으로 반환.

    1) DB: 만료 안 됨 + 본인 제외 + BBox(lat/lng 인덱스)로 후보 축소
    2) 앱: haversine 정밀 거리 <= radius_km 만 남기고 정렬, limit 적용
    - activity_type 지정 시 같은 활동 또는 ANYTHING만 (ANYTHING 필터는 전부 허용)
    - 차단 관계(양방향)인 사용자는 제외
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
    q = db.query(PresenceBroadcast).filter(
        PresenceBroadcast.expires_at > now,
        PresenceBroadcast.user_id != requester_id,
        PresenceBroadcast.lat >= box.min_lat,
        PresenceBroadcast.lat <= box.max_lat,
    )
    if box.min_lng is not None:
        q = q.filter(PresenceBroadcast.lng >= box.min_lng, PresenceBroadcast.lng <= box.max_lng)
    candidates = q.all()

    blocked = get_blocked_user_ids(db, requester_id)
    in_radius: list[tuple[PresenceBroadcast, float]] = []
    for status in candidates:
        if status.user_id in blocked:
            continue
        if wanted is not None and not wanted.is_compatible_with(ActivityType(status.activity_type)):
            continue
        dist = distance_km(lat, lng, status.lat, status.lng)
        if dist <= radius_km:
            in_radius.append((status, dist))

    in_radius.sort(key=lambda pair: pair[1])
    in_radius = in_radius[:limit]

    profiles = lookup_profiles(db, [s.user_id for s, _ in in_radius])
    logger.debug(
        f"nearby status: requester={requester_id} candidates={len(candidates)} returned={len(in_radius)}"
    )
    return [NearbyBroadcast(s, d, profiles[s.user_id]) for s, d in in_radius]
