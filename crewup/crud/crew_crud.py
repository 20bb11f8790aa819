# 크루 채팅 CRUD: 채팅 생성 프리미티브(언락/버디 매치에서 호출), 멤버 조회, 메시지 작성/조회

from datetime import datetime
from typing import Iterable, List, NamedTuple, Optional

from loguru import logger
from sqlalchemy import func
from sqlalchemy.orm import Session

from crewup.core.clock import as_utc, resolve_now
from crewup.core.config import MESSAGE_MAX_LENGTH, MESSAGES_PAGE_LIMIT
from crewup.errors import ForbiddenError, NotFoundError, ValidationError
from crewup.integrations.directory import Profile, get_blocked_user_ids, lookup_profiles
from crewup.models.crew import ChatKind, CrewChat, CrewChatMember, CrewMessage


class MemberView(NamedTuple):
    user_id: str
    joined_at: datetime
    profile: Profile


class MessageView(NamedTuple):
    message: CrewMessage
    profile: Profile


class ChatSummary(NamedTuple):
    chat: CrewChat
    member_count: int
    last_message: Optional[MessageView]


def create_chat(
    db: Session,
    kind: ChatKind,
    activity_type: str,
    area: Optional[str],
    member_ids: Iterable[str] = (),
    now: Optional[datetime] = None,
) -> CrewChat:
    """
    채팅 생성 + 멤버 일괄 추가.

    - 중복 id는 한 번만 추가 (순서 유지)
    - ⚠️ commit 하지 않음. 웨이브 언락/버디 매치 트랜잭션 안에서 호출됨.
    """
    now = resolve_now(now)
    chat = CrewChat(kind=ChatKind(kind).value, activity_type=activity_type, area=area, created_at=now)
    db.add(chat)
    db.flush()  # chat.id 확보

    add_members(db, chat.id, member_ids, now=now)
    return chat


def add_members(db: Session, chat_id: int, member_ids: Iterable[str], now: Optional[datetime] = None) -> int:
    """멤버 일괄 insert. 반환: 추가된 수."""
    now = resolve_now(now)
    unique_ids = list(dict.fromkeys(str(uid) for uid in member_ids))
    if not unique_ids:
        return 0
    db.add_all([CrewChatMember(chat_id=chat_id, user_id=uid, joined_at=now) for uid in unique_ids])
    db.flush()
    return len(unique_ids)


def delete_chat_contents(db: Session, chat_id: int) -> None:
    """채팅의 메시지 → 멤버 삭제 (채팅 행은 유지)."""
    db.query(CrewMessage).filter(CrewMessage.chat_id == chat_id).delete(synchronize_session=False)
    db.query(CrewChatMember).filter(CrewChatMember.chat_id == chat_id).delete(synchronize_session=False)


def delete_chat(db: Session, chat_id: int) -> None:
    """채팅 삭제: 메시지 → 멤버 → 채팅 (자식 먼저). 참조하는 웨이브/매치는 호출자가 먼저 끊어야 함."""
    delete_chat_contents(db, chat_id)
    db.query(CrewChat).filter(CrewChat.id == chat_id).delete(synchronize_session=False)
    db.flush()


def is_member(db: Session, chat_id: int, user_id: str) -> bool:
    return (
        db.query(CrewChatMember.id)
        .filter(CrewChatMember.chat_id == chat_id, CrewChatMember.user_id == user_id)
        .first()
        is not None
    )


def _get_chat_or_404(db: Session, chat_id: int) -> CrewChat:
    chat = db.query(CrewChat).filter(CrewChat.id == chat_id).first()
    if chat is None:
        raise NotFoundError("Chat not found")
    return chat


def list_members(db: Session, chat_id: int) -> List[MemberView]:
    """채팅 멤버 목록 (참여 순). 이름은 디렉터리 폴백 체인으로 채움."""
    _get_chat_or_404(db, chat_id)
    members = (
        db.query(CrewChatMember)
        .filter(CrewChatMember.chat_id == chat_id)
        .order_by(CrewChatMember.joined_at.asc(), CrewChatMember.id.asc())
        .all()
    )
    profiles = lookup_profiles(db, [m.user_id for m in members])
    return [MemberView(m.user_id, m.joined_at, profiles[m.user_id]) for m in members]


def post_message(
    db: Session,
    chat_id: int,
    sender_id: str,
    content: str,
    now: Optional[datetime] = None,
) -> MessageView:
    """
    메시지 작성.

    - 내용은 trim 후 1~MESSAGE_MAX_LENGTH자
    - 보낸 사람은 이미 멤버여야 함
    - 메시지 insert + chat.last_message_at 갱신을 같은 트랜잭션에서 (commit은 호출자)
    """
    text = (content or "").strip()
    if not text:
        raise ValidationError("Content required")
    if len(text) > MESSAGE_MAX_LENGTH:
        raise ValidationError(f"Message too long (max {MESSAGE_MAX_LENGTH} characters)")

    chat = _get_chat_or_404(db, chat_id)
    if not is_member(db, chat_id, sender_id):
        raise ForbiddenError("Not a member of this chat")

    now = resolve_now(now)
    message = CrewMessage(chat_id=chat_id, sender_id=sender_id, content=text, created_at=now)
    db.add(message)
    chat.last_message_at = message.created_at
    db.flush()

    profile = lookup_profiles(db, [sender_id])[sender_id]
    logger.debug(f"message posted: chat={chat_id} sender={sender_id} id={message.id}")
    return MessageView(message, profile)


def get_messages(
    db: Session,
    chat_id: int,
    requester_id: str,
    limit: int = MESSAGES_PAGE_LIMIT,
) -> List[MessageView]:
    """
    최근 limit개 메시지를 시간순(오래된 것 먼저)으로 반환.
    요청자와 차단 관계인 사용자의 메시지는 제외.
    """
    if limit is None or limit < 1:
        raise ValidationError("limit must be at least 1")
    _get_chat_or_404(db, chat_id)
    if not is_member(db, chat_id, requester_id):
        raise ForbiddenError("Not a member of this chat")

    blocked = get_blocked_user_ids(db, requester_id)
    q = db.query(CrewMessage).filter(CrewMessage.chat_id == chat_id)
    if blocked:
        q = q.filter(CrewMessage.sender_id.notin_(blocked))
    # 최신 limit개를 가져온 뒤 뒤집어서 시간순
    recent = q.order_by(CrewMessage.created_at.desc(), CrewMessage.id.desc()).limit(limit).all()
    recent.reverse()

    profiles = lookup_profiles(db, [m.sender_id for m in recent])
    return [MessageView(m, profiles[m.sender_id]) for m in recent]


def list_my_chats(db: Session, user_id: str) -> List[ChatSummary]:
    """
    내가 멤버인 채팅 목록. 최근 메시지가 있는 채팅 먼저 (last_message_at, 없으면 created_at 기준 내림차순).
    """
    chats = (
        db.query(CrewChat)
        .join(CrewChatMember, CrewChatMember.chat_id == CrewChat.id)
        .filter(CrewChatMember.user_id == user_id)
        .all()
    )
    if not chats:
        return []
    chat_ids = [c.id for c in chats]

    counts = dict(
        db.query(CrewChatMember.chat_id, func.count(CrewChatMember.id))
        .filter(CrewChatMember.chat_id.in_(chat_ids))
        .group_by(CrewChatMember.chat_id)
        .all()
    )

    blocked = get_blocked_user_ids(db, user_id)
    last_messages: dict[int, CrewMessage] = {}
    for chat in chats:
        q = db.query(CrewMessage).filter(CrewMessage.chat_id == chat.id)
        if blocked:
            q = q.filter(CrewMessage.sender_id.notin_(blocked))
        last = q.order_by(CrewMessage.created_at.desc(), CrewMessage.id.desc()).first()
        if last is not None:
            last_messages[chat.id] = last

    profiles = lookup_profiles(db, [m.sender_id for m in last_messages.values()])
    summaries = [
        ChatSummary(
            chat=c,
            member_count=counts.get(c.id, 0),
            last_message=(
                MessageView(last_messages[c.id], profiles[last_messages[c.id].sender_id])
                if c.id in last_messages
                else None
            ),
        )
        for c in chats
    ]
    summaries.sort(key=lambda s: as_utc(s.chat.last_message_at or s.chat.created_at), reverse=True)
    return summaries
