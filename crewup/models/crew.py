# CrewChat 모델: 웨이브 언락/버디 매치 시 생성되는 채팅방 + 멤버 + 메시지

from enum import Enum as PyEnum

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.sql import func

from crewup.models.base import Base


class ChatKind(str, PyEnum):
    """WAVE: 웨이브 임계치 도달로 열린 그룹 채팅, BUDDY: 1:1 버디 매치 채팅."""

    WAVE = "WAVE"
    BUDDY = "BUDDY"


class CrewChat(Base):
    """채팅방. 삭제 시 메시지 → 멤버 → 채팅 순서로 지움 (crud에서 명시적으로 처리)."""

    __tablename__ = "crew_chats"

    id = Column(Integer, primary_key=True, index=True)
    kind = Column(String(10), nullable=False, default=ChatKind.WAVE.value)
    activity_type = Column(String(20), nullable=False)
    area = Column(String(200), nullable=True)  # 위치 라벨
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    last_message_at = Column(DateTime(timezone=True), nullable=True)


class CrewChatMember(Base):
    __tablename__ = "crew_chat_members"

    id = Column(Integer, primary_key=True, index=True)
    chat_id = Column(Integer, ForeignKey("crew_chats.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    joined_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (UniqueConstraint("chat_id", "user_id", name="uq_crew_chat_member"),)


class CrewMessage(Base):
    __tablename__ = "crew_messages"

    id = Column(Integer, primary_key=True, index=True)
    chat_id = Column(Integer, ForeignKey("crew_chats.id", ondelete="CASCADE"), nullable=False)
    sender_id = Column(String(64), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (Index("idx_crew_messages_chat_created", "chat_id", "created_at"),)
