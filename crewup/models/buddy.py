# BuddyMatch 모델: 상태에 응답해서 성사된 1:1 매치 (전용 채팅과 함께 생성, 이후 불변)

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint

from crewup.models.base import Base


class BuddyMatch(Base):
    """
    user_low/user_high: 두 사용자 id를 정렬해 저장 → 방향과 무관하게 쌍 하나만 존재 (UniqueConstraint).
    """

    __tablename__ = "buddy_matches"

    id = Column(Integer, primary_key=True, index=True)
    initiator_id = Column(String(64), nullable=False, index=True)
    recipient_id = Column(String(64), nullable=False, index=True)
    user_low = Column(String(64), nullable=False)
    user_high = Column(String(64), nullable=False)
    activity_type = Column(String(20), nullable=False)
    chat_id = Column(Integer, ForeignKey("crew_chats.id"), nullable=False, unique=True)
    matched_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (UniqueConstraint("user_low", "user_high", name="uq_buddy_match_pair"),)


def pair_low_high(a: str, b: str) -> tuple[str, str]:
    a_str, b_str = str(a), str(b)
    return (a_str, b_str) if a_str < b_str else (b_str, a_str)
