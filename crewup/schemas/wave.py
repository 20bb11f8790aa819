# 웨이브 요청/응답 스키마

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from crewup.models.activity import ActivityType
from crewup.schemas.common import ProfileOut

WaveStatusLiteral = Literal["PROPOSED", "UNLOCKED", "EXPIRED"]


class WaveCreate(BaseModel):
    """웨이브 생성 요청. threshold는 크루 채팅이 열리는 최소 참여 인원."""

    activity_type: ActivityType
    area: str = Field(..., min_length=1, max_length=200)
    location_name: Optional[str] = Field(default=None, max_length=300)
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    threshold: int = Field(default=3, ge=2, le=50)
    scheduled_for: Optional[datetime] = None
    note: Optional[str] = Field(default=None, max_length=140)


class WaveOut(BaseModel):
    """웨이브 공통 필드. 참여자 신원은 포함하지 않음."""

    id: int
    status: WaveStatusLiteral
    activity_type: ActivityType
    area: str
    location_name: Optional[str] = None
    lat: float
    lng: float
    scheduled_for: Optional[datetime] = None
    note: Optional[str] = None
    threshold: int
    participant_count: int = 0
    started_at: datetime
    expires_at: datetime
    unlocked: bool
    chat_id: Optional[int] = None
    creator: ProfileOut
    # nearby에서만 의미 있음(요청 위치 기준 거리)
    distance_km: Optional[float] = None


class WaveDetailOut(WaveOut):
    is_creator: bool = False
    has_joined: bool = False
    # 언락 전에는 null (인원 수만 공개)
    participants: Optional[List[ProfileOut]] = None


class NearbyWaveResponse(BaseModel):
    waves: List[WaveOut]


class JoinOut(BaseModel):
    participant_count: int
    unlocked: bool
    chat_id: Optional[int] = None


class LeaveOut(BaseModel):
    message: str = "left"
    participant_count: int
