# 웨이브 생성/조회/참여/취소/삭제 API
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from fastapi.responses import StreamingResponse
from loguru import logger
from sqlalchemy.orm import Session

from crewup.core.config import DEFAULT_RADIUS_KM, MAX_RADIUS_KM, NEARBY_LIMIT
from crewup.core.identity import get_caller_id
from crewup.crud.wave_crud import (
    create_wave,
    delete_wave,
    get_wave,
    join_wave,
    leave_wave,
    list_nearby_waves,
)
from crewup.database import get_db
from crewup.errors import CrewUpError
from crewup.integrations.directory import Profile
from crewup.models.activity import ActivityType
from crewup.models.wave import WaveActivity
from crewup.realtime.sse_pubsub import publish_wave_event, stream_events, wave_channel
from crewup.schemas.common import profile_out
from crewup.schemas.wave import JoinOut, LeaveOut, NearbyWaveResponse, WaveCreate, WaveDetailOut, WaveOut

router = APIRouter(prefix="/waves", tags=["Waves"])


def _wave_fields(
    wave: WaveActivity,
    status: str,
    participant_count: int,
    creator: Profile,
    distance_km: Optional[float] = None,
) -> dict:
    return dict(
        id=wave.id,
        status=status,
        activity_type=wave.activity_type,
        area=wave.area,
        location_name=wave.location_name,
        lat=wave.lat,
        lng=wave.lng,
        scheduled_for=wave.scheduled_for,
        note=wave.note,
        threshold=wave.threshold,
        participant_count=participant_count,
        started_at=wave.started_at,
        expires_at=wave.expires_at,
        unlocked=bool(wave.unlocked),
        chat_id=wave.chat_id,
        creator=profile_out(creator),
        distance_km=None if distance_km is None else round(distance_km, 6),
    )


def _detail_response(db: Session, wave_id: int, caller_id: str) -> WaveDetailOut:
    detail = get_wave(db, wave_id, caller_id)
    return WaveDetailOut(
        **_wave_fields(detail.wave, detail.status, detail.participant_count, detail.creator),
        is_creator=detail.is_creator,
        has_joined=detail.has_joined,
        participants=(
            [profile_out(p) for p in detail.participants] if detail.participants is not None else None
        ),
    )


@router.post("", response_model=WaveDetailOut, status_code=201)
def post_wave(
    body: WaveCreate,
    db: Session = Depends(get_db),
    caller_id: str = Depends(get_caller_id),
) -> WaveDetailOut:
    """웨이브 생성. 생성자는 참여 인원에 포함되지 않음."""
    try:
        wave = create_wave(
            db,
            caller_id,
            body.activity_type,
            body.area,
            body.lat,
            body.lng,
            threshold=body.threshold,
            scheduled_for=body.scheduled_for,
            note=body.note,
            location_name=body.location_name,
        )
        db.commit()
        return _detail_response(db, wave.id, caller_id)

    except CrewUpError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.message)

    except Exception:
        db.rollback()
        logger.exception("failed to create wave")
        raise HTTPException(status_code=500, detail="Failed to create wave")


@router.get("/nearby", response_model=NearbyWaveResponse)
def get_waves_nearby(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    radius_km: float = Query(DEFAULT_RADIUS_KM, gt=0, le=MAX_RADIUS_KM),
    limit: int = Query(NEARBY_LIMIT, ge=1, le=100),
    activity_type: Optional[ActivityType] = Query(None),
    db: Session = Depends(get_db),
    caller_id: str = Depends(get_caller_id),
) -> NearbyWaveResponse:
    """반경 내 진행 중인 웨이브 (최신 순). distance_km 포함."""
    try:
        rows = list_nearby_waves(
            db, caller_id, lat, lng, radius_km=radius_km, limit=limit, activity_type=activity_type
        )
    except CrewUpError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return NearbyWaveResponse(
        waves=[
            WaveOut(**_wave_fields(r.wave, r.status, r.participant_count, r.creator, r.distance_km))
            for r in rows
        ]
    )


@router.get("/{wave_id}", response_model=WaveDetailOut)
def get_wave_detail(
    wave_id: int,
    db: Session = Depends(get_db),
    caller_id: str = Depends(get_caller_id),
) -> WaveDetailOut:
    """웨이브 상세. 언락 전에는 participants=null (인원 수만)."""
    try:
        return _detail_response(db, wave_id, caller_id)
    except CrewUpError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{wave_id}/join", response_model=JoinOut, status_code=201)
async def post_join(
    wave_id: int,
    db: Session = Depends(get_db),
    caller_id: str = Depends(get_caller_id),
) -> JoinOut:
    """웨이브 참여. 이미 참여 중이면 409. 임계 인원 도달 시 같은 트랜잭션에서 크루 채팅 언락."""
    try:
        result = join_wave(db, wave_id, caller_id)
        db.commit()  # ✅ 트랜잭션 소유권: 라우터 (참여 + 언락이 함께 commit)

    except CrewUpError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.message)

    except Exception:
        db.rollback()
        logger.exception(f"failed to join wave {wave_id}")
        raise HTTPException(status_code=500, detail="Failed to join wave")

    if result.already_joined:
        raise HTTPException(status_code=409, detail="Already joined this wave")

    # commit 후 발행 → SSE 구독자에게 실시간 푸시
    await publish_wave_event(wave_id, "participant_joined", participant_count=result.participant_count)
    if result.unlocked_now:
        await publish_wave_event(wave_id, "wave_unlocked", chat_id=result.chat_id)
    return JoinOut(participant_count=result.participant_count, unlocked=result.unlocked, chat_id=result.chat_id)


@router.delete("/{wave_id}/leave", response_model=LeaveOut)
async def delete_leave(
    wave_id: int,
    db: Session = Depends(get_db),
    caller_id: str = Depends(get_caller_id),
) -> LeaveOut:
    """웨이브 참여 취소. 생성자는 403. 언락 상태는 유지됨."""
    try:
        participant_count = leave_wave(db, wave_id, caller_id)
        db.commit()

    except CrewUpError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.message)

    except Exception:
        db.rollback()
        logger.exception(f"failed to leave wave {wave_id}")
        raise HTTPException(status_code=500, detail="Failed to leave wave")

    await publish_wave_event(wave_id, "participant_left", participant_count=participant_count)
    return LeaveOut(participant_count=participant_count)


@router.delete("/{wave_id}", status_code=204)
async def delete_wave_route(
    wave_id: int,
    db: Session = Depends(get_db),
    caller_id: str = Depends(get_caller_id),
) -> Response:
    """웨이브 삭제 (생성자만). 크루 채팅과 메시지도 함께 삭제."""
    try:
        delete_wave(db, wave_id, caller_id)
        db.commit()

    except CrewUpError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.message)

    except Exception:
        db.rollback()
        logger.exception(f"failed to delete wave {wave_id}")
        raise HTTPException(status_code=500, detail="Failed to delete wave")

    await publish_wave_event(wave_id, "wave_deleted")
    return Response(status_code=204)


@router.get("/{wave_id}/stream")
async def get_wave_stream(wave_id: int):
    """SSE: 웨이브 참여 인원/언락 이벤트 실시간 스트림 (participant_joined, participant_left, wave_unlocked)."""
    return StreamingResponse(
        stream_events(wave_channel(wave_id), default_event="wave_event"),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
