# PresenceBroadcast 모델: "I'm down" 상태 (사용자당 최대 1개, TTL 지나면 없는 것으로 취급)

from sqlalchemy import Column, DateTime, Float, Index, Integer, String

from crewup.models.base import Base


class PresenceBroadcast(Base):
    """상태 테이블. 만료 행은 삭제하지 않고 조회 시 expires_at으로 걸러냄 (정리는 외부 reaper)."""

    __tablename__ = "presence_broadcasts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, unique=True)  # 사용자당 1개 (upsert)
    activity_type = Column(String(20), nullable=False)
    note = Column(String(140), nullable=True)  # 한 줄 메모(선택)
    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)
    set_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)  # set_at + STATUS_TTL_HOURS

    __table_args__ = (
        Index("idx_presence_broadcasts_location", "lat", "lng"),  # BBox 선필터용
        Index("idx_presence_broadcasts_expires_at", "expires_at"),
    )
