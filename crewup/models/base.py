from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    모든 SQLAlchemy 모델이 상속할 기본 Base 클래스

    alembic/env.py는 crewup.models를 전부 import한 뒤 Base.metadata를 target_metadata로 사용.
    """

    pass
