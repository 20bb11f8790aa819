import sys

from loguru import logger

from crewup.core.config import LOG_FILE, LOG_LEVEL

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{line} | {message}"


def setup_logging(log_file: str | None = LOG_FILE) -> None:
    """stdout + 파일(10MB 로테이션, 14일 보관) 싱크 구성. log_file=None이면 stdout만."""
    logger.remove()

    logger.add(sys.stdout, level=LOG_LEVEL, format=LOG_FORMAT)

    if log_file:
        logger.add(
            log_file,
            rotation="10 MB",
            retention="14 days",
            level=LOG_LEVEL,
            format=LOG_FORMAT,
        )

    logger.info("Logging initialized")
