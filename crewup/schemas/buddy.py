# 버디 매치 요청/응답 스키마

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field

from crewup.models.activity import ActivityType


class MatchBody(BaseModel):
    """상대(recipient)의 상태에 "I'm down too"로 응답."""

    recipient_id: str = Field(..., min_length=1, max_length=64)
    activity_type: ActivityType


class MatchOut(BaseModel):
    id: int
    initiator_id: str
    recipient_id: str
    other_user_id: str
    activity_type: ActivityType
    chat_id: int
    matched_at: datetime


class MatchListResponse(BaseModel):
    matches: List[MatchOut]
