# 시간 유틸: 모든 시각은 timezone-aware UTC로 다룬다
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    DB에서 읽은 시각을 aware UTC로 정규화.
    SQLite는 tzinfo 없이 돌려주므로 naive 값은 UTC로 간주한다.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_expired(expires_at: datetime, now: Optional[datetime] = None) -> bool:
    """expires_at <= now 이면 만료. 캐시된 플래그 없이 매번 현재 시각과 비교."""
    now = now or utcnow()
    return as_utc(expires_at) <= as_utc(now)


def resolve_now(now: Optional[datetime] = None) -> datetime:
    """crud 진입점용 기준 시각. 호출자가 준 다른 오프셋의 시각도 UTC로 바꿔서 저장/비교."""
    return as_utc(now) if now is not None else utcnow()
