from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from crewup.core.logging import setup_logging
from crewup.routers.activities import router as activities_router
from crewup.routers.buddies import router as buddies_router
from crewup.routers.crews import router as crews_router
from crewup.routers.presence import router as presence_router
from crewup.routers.waves import router as waves_router

setup_logging()


def _run_alembic_upgrade() -> None:
    """앱 기동 시 DB 마이그레이션 자동 적용."""
    from alembic import command
    from alembic.config import Config

    root = Path(__file__).resolve().parent.parent
    cfg = Config(str(root / "alembic.ini"))
    command.upgrade(cfg, "head")


# 애플리케이션 팩토리 패턴을 사용할 수도 있지만
# 초기 세팅 단계에서는 단순한 전역 인스턴스로 구성
app = FastAPI(
    title="CrewUp API",
    description="근처 사람들과 즉흥 운동 모임을 만드는 CrewUp 백엔드 API (상태, 버디 매치, 웨이브, 크루 채팅)",
    version="0.1.0",
)


@app.on_event("startup")
def _startup_migrate() -> None:
    """기동 시 Alembic upgrade head 실행."""
    try:
        _run_alembic_upgrade()
        logger.info("Database migrated to head")
    except Exception:
        # DB 미기동 등 실패 시에도 앱은 기동 (예: 로컬에서 DB 없이 실행 시)
        logger.exception("Alembic upgrade failed, starting without migration")


app.include_router(activities_router)
app.include_router(presence_router)
app.include_router(buddies_router)
app.include_router(waves_router)
app.include_router(crews_router)

# CORS 설정
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # TODO: 운영 시 특정 도메인으로 제한
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["Health"])
async def health_check() -> dict:
    return {"status": "ok"}


@app.get("/", tags=["Root"])
async def root() -> dict:
    return {
        "message": "CrewUp API",
        "docs": "/docs",
        "redoc": "/redoc",
        "health": "/health",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("crewup.main:app", host="0.0.0.0", port=8000, reload=True)
