# 상태(I'm down) API: 설정/조회/해제 + 근처 상태 검색
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from loguru import logger
from sqlalchemy.orm import Session

from crewup.core.config import DEFAULT_RADIUS_KM, MAX_RADIUS_KM, NEARBY_LIMIT
from crewup.core.identity import get_caller_id
from crewup.crud.presence_crud import clear_status, find_nearby, get_status, set_status
from crewup.database import get_db
from crewup.errors import CrewUpError
from crewup.models.activity import ActivityType
from crewup.schemas.common import profile_out
from crewup.schemas.presence import (
    NearbyStatusOut,
    NearbyStatusResponse,
    StatusEnvelope,
    StatusOut,
    StatusSetBody,
)

router = APIRouter(prefix="/status", tags=["Status"])


@router.put("", response_model=StatusEnvelope)
def put_status(
    body: StatusSetBody,
    db: Session = Depends(get_db),
    caller_id: str = Depends(get_caller_id),
) -> StatusEnvelope:
    """상태 설정(덮어쓰기). expires_at = 지금 + 2시간."""
    try:
        status = set_status(db, caller_id, body.activity_type, body.note, body.lat, body.lng)
        db.commit()
        db.refresh(status)
        return StatusEnvelope(status=StatusOut.model_validate(status))

    except CrewUpError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.message)

    except Exception:
        db.rollback()
        logger.exception("failed to set status")
        raise HTTPException(status_code=500, detail="Failed to set status")


@router.get("", response_model=StatusEnvelope)
def get_my_status(
    db: Session = Depends(get_db),
    caller_id: str = Depends(get_caller_id),
) -> StatusEnvelope:
    """내 상태. 만료됐으면 status=null."""
    status = get_status(db, caller_id)
    return StatusEnvelope(status=StatusOut.model_validate(status) if status else None)


@router.delete("", status_code=204)
def delete_status(
    db: Session = Depends(get_db),
    caller_id: str = Depends(get_caller_id),
) -> Response:
    """상태 해제. 없어도 204."""
    clear_status(db, caller_id)
    db.commit()
    return Response(status_code=204)


@router.get("/nearby", response_model=NearbyStatusResponse)
def get_nearby_statuses(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    radius_km: float = Query(DEFAULT_RADIUS_KM, gt=0, le=MAX_RADIUS_KM),
    limit: int = Query(NEARBY_LIMIT, ge=1, le=100),
    activity_type: Optional[ActivityType] = Query(None),
    db: Session = Depends(get_db),
    caller_id: str = Depends(get_caller_id),
) -> NearbyStatusResponse:
    """반경 내 다른 사용자들의 유효 상태 (가까운 순). activity_type 지정 시 같은 활동 또는 ANYTHING."""
    try:
        rows = find_nearby(db, caller_id, lat, lng, radius_km=radius_km, limit=limit, activity_type=activity_type)
    except CrewUpError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    return NearbyStatusResponse(
        nearby=[
            NearbyStatusOut(
                **StatusOut.model_validate(row.broadcast).model_dump(),
                distance_km=round(row.distance_km, 6),
                user=profile_out(row.profile),
            )
            for row in rows
        ]
    )
