# 상태(I'm down) 요청/응답 스키마

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from crewup.models.activity import ActivityType
from crewup.schemas.common import ProfileOut


class StatusSetBody(BaseModel):
    """상태 설정 요청. 좌표는 근처 검색 기준점."""

    activity_type: ActivityType
    note: Optional[str] = Field(default=None, max_length=140)
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class StatusOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    activity_type: ActivityType
    note: Optional[str] = None
    lat: float
    lng: float
    set_at: datetime
    expires_at: datetime


class StatusEnvelope(BaseModel):
    """만료/미설정이면 status=null."""

    status: Optional[StatusOut] = None


class NearbyStatusOut(StatusOut):
    distance_km: float
    user: ProfileOut


class NearbyStatusResponse(BaseModel):
    nearby: List[NearbyStatusOut]
