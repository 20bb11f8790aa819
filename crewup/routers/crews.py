# 크루 채팅 API: 내 채팅 목록, 멤버, 메시지 조회/작성, 실시간 스트림
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from loguru import logger
from sqlalchemy.orm import Session

from crewup.core.config import MESSAGES_PAGE_LIMIT
from crewup.core.identity import get_caller_id
from crewup.crud.crew_crud import MessageView, get_messages, is_member, list_members, list_my_chats, post_message
from crewup.database import get_db
from crewup.errors import CrewUpError
from crewup.realtime.sse_pubsub import crew_channel, publish_crew_message, stream_events
from crewup.schemas.common import profile_out
from crewup.schemas.crew import (
    CrewListResponse,
    CrewSummaryOut,
    LastMessageOut,
    MemberListResponse,
    MemberOut,
    MessageBody,
    MessageListResponse,
    MessageOut,
)

router = APIRouter(prefix="/crews", tags=["Crews"])


def _message_to_response(view: MessageView) -> MessageOut:
    m = view.message
    return MessageOut(
        id=m.id,
        chat_id=m.chat_id,
        sender_id=m.sender_id,
        content=m.content,
        created_at=m.created_at,
        sender=profile_out(view.profile),
    )


@router.get("", response_model=CrewListResponse)
def get_my_crews(
    db: Session = Depends(get_db),
    caller_id: str = Depends(get_caller_id),
) -> CrewListResponse:
    """내가 멤버인 채팅 목록. 최근 메시지가 있는 채팅 먼저."""
    crews = []
    for s in list_my_chats(db, caller_id):
        last = s.last_message
        crews.append(
            CrewSummaryOut(
                chat_id=s.chat.id,
                kind=s.chat.kind,
                activity_type=s.chat.activity_type,
                area=s.chat.area,
                member_count=s.member_count,
                created_at=s.chat.created_at,
                last_message=(
                    LastMessageOut(
                        content=last.message.content,
                        sender_name=last.profile.display_name,
                        created_at=last.message.created_at,
                    )
                    if last
                    else None
                ),
            )
        )
    return CrewListResponse(crews=crews)


@router.get("/{chat_id}/members", response_model=MemberListResponse)
def get_members(
    chat_id: int,
    db: Session = Depends(get_db),
    caller_id: str = Depends(get_caller_id),
) -> MemberListResponse:
    """채팅 멤버 목록 (멤버만 조회 가능)."""
    try:
        members = list_members(db, chat_id)
    except CrewUpError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    if caller_id not in {m.user_id for m in members}:
        raise HTTPException(status_code=403, detail="Not a member of this chat")
    return MemberListResponse(members=[MemberOut(user=profile_out(m.profile), joined_at=m.joined_at) for m in members])


@router.get("/{chat_id}/messages", response_model=MessageListResponse)
def get_chat_messages(
    chat_id: int,
    limit: int = Query(MESSAGES_PAGE_LIMIT, ge=1, le=MESSAGES_PAGE_LIMIT),
    db: Session = Depends(get_db),
    caller_id: str = Depends(get_caller_id),
) -> MessageListResponse:
    """최근 메시지 (시간순). 차단 관계인 사용자의 메시지는 제외."""
    try:
        views = get_messages(db, chat_id, caller_id, limit=limit)
    except CrewUpError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return MessageListResponse(messages=[_message_to_response(v) for v in views])


@router.post("/{chat_id}/messages", response_model=MessageOut, status_code=201)
async def post_chat_message(
    chat_id: int,
    body: MessageBody,
    db: Session = Depends(get_db),
    caller_id: str = Depends(get_caller_id),
) -> MessageOut:
    """메시지 작성. trim 후 1~500자. 메시지 + last_message_at 갱신을 한 트랜잭션으로."""
    try:
        view = post_message(db, chat_id, caller_id, body.content)
        db.commit()
        response = _message_to_response(view)

    except CrewUpError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.message)

    except Exception:
        db.rollback()
        logger.exception(f"failed to post message to chat {chat_id}")
        raise HTTPException(status_code=500, detail="Failed to post message")

    await publish_crew_message(chat_id, response.model_dump(mode="json"))
    return response


@router.get("/{chat_id}/stream")
async def get_crew_stream(
    chat_id: int,
    db: Session = Depends(get_db),
    caller_id: str = Depends(get_caller_id),
):
    """SSE: 새 메시지 실시간 스트림 (event: message_posted). 멤버만 구독 가능."""
    if not is_member(db, chat_id, caller_id):
        raise HTTPException(status_code=403, detail="Not a member of this chat")
    return StreamingResponse(
        stream_events(crew_channel(chat_id), default_event="message_posted"),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
