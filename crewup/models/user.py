# 사용자 디렉터리/차단 관계: 외부 서비스(인증/프로필)의 로컬 읽기 모델

from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.sql import func

from crewup.models.base import Base


class User(Base):
    """사용자 프로필 캐시. id는 인증 제공자가 발급한 문자열."""

    __tablename__ = "users"

    id = Column(String(64), primary_key=True)
    name = Column(String(100), nullable=True)
    first_name = Column(String(100), nullable=True)
    image_url = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class UserBlock(Base):
    """차단 관계. blocker → blocked 방향으로 저장하지만 조회는 양방향."""

    __tablename__ = "user_blocks"

    id = Column(Integer, primary_key=True, index=True)
    blocker_id = Column(String(64), nullable=False, index=True)
    blocked_id = Column(String(64), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (UniqueConstraint("blocker_id", "blocked_id", name="uq_user_block_pair"),)
