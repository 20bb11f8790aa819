# 외부 협력자 인터페이스: 사용자 디렉터리(이름/아바타) + 차단 관계
# 프로필/차단의 원본은 다른 서비스. 여기서는 로컬 읽기 모델(users, user_blocks) 조회만 담당.

from typing import Dict, Iterable, NamedTuple, Optional, Set

from sqlalchemy import or_
from sqlalchemy.orm import Session

from crewup.models.user import User, UserBlock

ANONYMOUS_NAME = "Anonymous"


class Profile(NamedTuple):
    user_id: str
    display_name: str
    image_url: Optional[str] = None


def display_name_for(user: Optional[User]) -> str:
    """표시 이름 폴백 체인: first_name → name → "Anonymous"."""
    if user is None:
        return ANONYMOUS_NAME
    for candidate in (user.first_name, user.name):
        if candidate and candidate.strip():
            return candidate.strip()
    return ANONYMOUS_NAME


def lookup_profiles(db: Session, user_ids: Iterable[str]) -> Dict[str, Profile]:
    """user_id → Profile. 디렉터리에 없는 사용자도 Anonymous로 채워서 반환 (KeyError 없음)."""
    ids = {str(uid) for uid in user_ids}
    if not ids:
        return {}
    users = {u.id: u for u in db.query(User).filter(User.id.in_(ids)).all()}
    return {
        uid: Profile(
            user_id=uid,
            display_name=display_name_for(users.get(uid)),
            image_url=users[uid].image_url if uid in users else None,
        )
        for uid in ids
    }


def get_blocked_user_ids(db: Session, user_id: str) -> Set[str]:
    """양방향 차단 집합: user_id가 차단했거나 user_id를 차단한 사용자들."""
    rows = (
        db.query(UserBlock.blocker_id, UserBlock.blocked_id)
        .filter(or_(UserBlock.blocker_id == user_id, UserBlock.blocked_id == user_id))
        .all()
    )
    blocked: Set[str] = set()
    for blocker_id, blocked_id in rows:
        blocked.add(blocked_id if blocker_id == user_id else blocker_id)
    blocked.discard(user_id)
    return blocked
