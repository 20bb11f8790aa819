# 메타데이터 등록용: alembic/env.py와 테스트에서 import crewup.models로 모든 테이블 로드
from crewup.models.base import Base  # noqa: F401
from crewup.models.buddy import BuddyMatch  # noqa: F401
from crewup.models.crew import CrewChat, CrewChatMember, CrewMessage  # noqa: F401
from crewup.models.presence import PresenceBroadcast  # noqa: F401
from crewup.models.user import User, UserBlock  # noqa: F401
from crewup.models.wave import WaveActivity, WaveParticipant  # noqa: F401
