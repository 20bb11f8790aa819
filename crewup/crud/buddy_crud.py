# 버디 매치 CRUD: 상대 상태에 응답 → 매치 + 1:1 채팅을 한 트랜잭션으로 생성

from datetime import datetime
from typing import List, NamedTuple, Optional

from loguru import logger
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from crewup.core.clock import resolve_now
from crewup.crud.crew_crud import create_chat
from crewup.crud.presence_crud import get_status
from crewup.crud.validation import require_activity_type
from crewup.errors import AlreadyMatchedError, RecipientStatusExpiredError, SelfMatchError
from crewup.models.buddy import BuddyMatch, pair_low_high
from crewup.models.crew import ChatKind


class BuddyView(NamedTuple):
    match: BuddyMatch
    other_user_id: str


def find_match(db: Session, user_a: str, user_b: str) -> Optional[BuddyMatch]:
    low, high = pair_low_high(user_a, user_b)
    return (
        db.query(BuddyMatch)
        .filter(BuddyMatch.user_low == low, BuddyMatch.user_high == high)
        .first()
    )


def create_match(
    db: Session,
    initiator_id: str,
    recipient_id: str,
    activity_type,
    now: Optional[datetime] = None,
) -> BuddyMatch:
    """
    버디 매치 생성.

    전제 조건 (쓰기 전에 전부 확인):
    - initiator != recipient
    - 두 사람 사이(방향 무관) 기존 매치 없음
    - recipient의 상태가 만료되지 않음

    매치 행과 BUDDY 채팅(멤버 2명)을 같은 트랜잭션에서 생성 → 둘 다 있거나 둘 다 없음.
    동시에 같은 쌍이 들어오면 uq_buddy_match_pair 위반 → AlreadyMatchedError.

    ⚠️ commit/rollback 하지 않음. 호출자(라우터)가 트랜잭션을 제어.
    """
    if str(initiator_id) == str(recipient_id):
        raise SelfMatchError("Cannot match with yourself")
    activity = require_activity_type(activity_type)
    now = resolve_now(now)

    # 기존 매치가 먼저: 방향과 무관하게 같은 쌍은 항상 Conflict
    if find_match(db, initiator_id, recipient_id) is not None:
        raise AlreadyMatchedError("Already matched with this user")

    recipient_status = get_status(db, recipient_id, now=now)
    if recipient_status is None:
        raise RecipientStatusExpiredError("Recipient status has expired")

    low, high = pair_low_high(initiator_id, recipient_id)
    try:
        chat = create_chat(
            db,
            ChatKind.BUDDY,
            activity.value,
            area=None,
            member_ids=[initiator_id, recipient_id],
            now=now,
        )
        match = BuddyMatch(
            initiator_id=initiator_id,
            recipient_id=recipient_id,
            user_low=low,
            user_high=high,
            activity_type=activity.value,
            chat_id=chat.id,
            matched_at=now,
        )
        db.add(match)
        db.flush()
    except IntegrityError:
        # 동시에 같은 쌍이 매치되면 UniqueConstraint 위반 가능. rollback은 호출자에서 수행
        raise AlreadyMatchedError("Already matched with this user")

    logger.info(f"buddy match created: id={match.id} {initiator_id} -> {recipient_id} chat={chat.id}")
    return match


def list_matches(db: Session, user_id: str) -> List[BuddyView]:
    """내 버디 매치 목록 (최신 순)."""
    matches = (
        db.query(BuddyMatch)
        .filter(or_(BuddyMatch.initiator_id == user_id, BuddyMatch.recipient_id == user_id))
        .order_by(BuddyMatch.matched_at.desc(), BuddyMatch.id.desc())
        .all()
    )
    return [
        BuddyView(m, m.recipient_id if m.initiator_id == user_id else m.initiator_id)
        for m in matches
    ]
