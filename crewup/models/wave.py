# WaveActivity 모델: 임계 인원이 모이면 크루 채팅이 열리는 모임 제안

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.sql import func

from crewup.models.base import Base


class WaveActivity(Base):
    """
    웨이브 테이블.

    - unlocked == (chat_id IS NOT NULL). 한 번 언락되면 되돌리지 않음 (참여자가 떠나도 유지).
    - chat_id UNIQUE: 한 채팅이 두 웨이브에 연결될 수 없음 → 웨이브당 채팅 1개 보장의 마지막 안전장치.
    - 생성자는 participants 행이 없음 (암묵적 멤버, leave 불가).
    """

    __tablename__ = "wave_activities"

    id = Column(Integer, primary_key=True, index=True)
    creator_id = Column(String(64), nullable=False, index=True)
    activity_type = Column(String(20), nullable=False)
    area = Column(String(200), nullable=False)  # 지역 이름
    location_name = Column(String(300), nullable=True)  # 구체적 장소(선택)
    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)
    scheduled_for = Column(DateTime(timezone=True), nullable=True)
    note = Column(String(140), nullable=True)
    threshold = Column(Integer, nullable=False, default=3)  # 언락 최소 인원
    started_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    expires_at = Column(DateTime(timezone=True), nullable=False)  # started_at + WAVE_TTL_HOURS
    unlocked = Column(Boolean, nullable=False, default=False)
    chat_id = Column(Integer, ForeignKey("crew_chats.id"), nullable=True, unique=True)

    __table_args__ = (
        Index("idx_wave_activities_location", "lat", "lng"),
        Index("idx_wave_activities_expires_at", "expires_at"),
    )


class WaveParticipant(Base):
    """참여 명단. (wave_id, user_id) 유일 → 중복 참여는 DB 레벨에서도 차단."""

    __tablename__ = "wave_participants"

    id = Column(Integer, primary_key=True, index=True)
    wave_id = Column(Integer, ForeignKey("wave_activities.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    joined_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (UniqueConstraint("wave_id", "user_id", name="uq_wave_participant"),)
