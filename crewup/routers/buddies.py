# 버디 매치 API
from fastapi import APIRouter, Depends, HTTPException
from loguru import logger
from sqlalchemy.orm import Session

from crewup.core.identity import get_caller_id
from crewup.crud.buddy_crud import create_match, list_matches
from crewup.database import get_db
from crewup.errors import CrewUpError
from crewup.models.buddy import BuddyMatch
from crewup.schemas.buddy import MatchBody, MatchListResponse, MatchOut

router = APIRouter(prefix="/buddies", tags=["Buddies"])


def _match_to_response(match: BuddyMatch, viewer_id: str) -> MatchOut:
    other = match.recipient_id if match.initiator_id == viewer_id else match.initiator_id
    return MatchOut(
        id=match.id,
        initiator_id=match.initiator_id,
        recipient_id=match.recipient_id,
        other_user_id=other,
        activity_type=match.activity_type,
        chat_id=match.chat_id,
        matched_at=match.matched_at,
    )


@router.post("/match", response_model=MatchOut, status_code=201)
def post_match(
    body: MatchBody,
    db: Session = Depends(get_db),
    caller_id: str = Depends(get_caller_id),
) -> MatchOut:
    """상대 상태에 응답 → 매치 + 1:1 채팅 생성. 이미 매치된 쌍이면 409, 상대 상태 만료 시 410."""
    try:
        match = create_match(db, caller_id, body.recipient_id, body.activity_type)
        db.commit()  # ✅ 트랜잭션 소유권: 라우터 (매치 + 채팅이 함께 commit)
        db.refresh(match)
        return _match_to_response(match, caller_id)

    except CrewUpError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.message)

    except Exception:
        db.rollback()
        logger.exception("failed to create buddy match")
        raise HTTPException(status_code=500, detail="Failed to create match")


@router.get("", response_model=MatchListResponse)
def get_my_matches(
    db: Session = Depends(get_db),
    caller_id: str = Depends(get_caller_id),
) -> MatchListResponse:
    return MatchListResponse(matches=[_match_to_response(v.match, caller_id) for v in list_matches(db, caller_id)])
