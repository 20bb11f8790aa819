from typing import Generator

from loguru import logger
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from crewup.core.config import DATABASE_URL, LOG_LEVEL


def build_engine(url: str, begin_immediate: bool = False, **kwargs) -> Engine:
    """
    SQLAlchemy 엔진 생성.

    - future=True: 최신 SQLAlchemy 스타일 사용
    - SQLite(테스트/로컬)는 스레드 간 커넥션 공유 허용
    - begin_immediate: SQLite는 FOR UPDATE를 무시하므로 트랜잭션 시작 시 바로 쓰기 잠금(BEGIN IMMEDIATE)을 잡아
      같은 DB 파일에 대한 트랜잭션을 직렬화. 커넥션 하나를 공유하는 in-memory DB에는 쓰지 말 것
    """
    if url.startswith("sqlite"):
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        kwargs["connect_args"] = connect_args
    else:
        kwargs.setdefault("pool_pre_ping", True)
    engine = create_engine(url, echo=False, future=True, **kwargs)

    if begin_immediate and url.startswith("sqlite"):

        @event.listens_for(engine, "connect")
        def _disable_pysqlite_begin(dbapi_connection, connection_record) -> None:
            # 드라이버의 암묵적 BEGIN 대신 아래 begin 이벤트에서 직접 BEGIN
            dbapi_connection.isolation_level = None

        @event.listens_for(engine, "begin")
        def _begin_immediate(conn) -> None:
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


# 파일 기반 SQLite(sqlite:///path)일 때만 직렬화 모드
engine: Engine = build_engine(DATABASE_URL, begin_immediate=DATABASE_URL.startswith("sqlite:///"))


if LOG_LEVEL == "TRACE":

    @event.listens_for(engine, "before_cursor_execute")
    def _log_sql(conn, cursor, statement, parameters, context, executemany) -> None:
        logger.trace(f"SQL: {statement} | params={parameters}")


# 세션 팩토리 생성
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI 의존성 주입(Dependency Injection)에서 사용할 DB 세션 제공 함수

    트랜잭션 소유권은 라우터에 있음: crud 함수는 flush만 하고 commit/rollback은 라우터가 호출.
    """
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()
