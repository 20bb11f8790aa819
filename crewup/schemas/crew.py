# 크루 채팅 요청/응답 스키마

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from crewup.schemas.common import ProfileOut


class MessageBody(BaseModel):
    # 길이(trim 후 1~500자)는 crud에서 검증 → 공백만 있는 경우도 같은 에러 메시지
    content: str = Field(..., max_length=2000)


class MessageOut(BaseModel):
    id: int
    chat_id: int
    sender_id: str
    content: str
    created_at: datetime
    sender: ProfileOut


class MessageListResponse(BaseModel):
    messages: List[MessageOut]


class MemberOut(BaseModel):
    user: ProfileOut
    joined_at: datetime


class MemberListResponse(BaseModel):
    members: List[MemberOut]


class LastMessageOut(BaseModel):
    content: str
    sender_name: str
    created_at: datetime


class CrewSummaryOut(BaseModel):
    chat_id: int
    kind: str
    activity_type: str
    area: Optional[str] = None
    member_count: int
    created_at: datetime
    last_message: Optional[LastMessageOut] = None


class CrewListResponse(BaseModel):
    crews: List[CrewSummaryOut]
