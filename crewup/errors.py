# 도메인 예외: 라우터가 status_code로 HTTPException 변환 + rollback 처리


class CrewUpError(Exception):
    """모든 도메인 예외의 기반. message는 호출자에게 그대로 노출된다."""

    status_code = 400

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(CrewUpError):
    """웨이브/채팅/매치 없음."""

    status_code = 404


class ExpiredError(CrewUpError):
    """웨이브 또는 상태(broadcast)가 TTL을 지남."""

    status_code = 410


class ConflictError(CrewUpError):
    """중복 참여, 중복 매치."""

    status_code = 409


class ForbiddenError(CrewUpError):
    """생성자 전용 동작을 다른 사람이 시도, 채팅 멤버가 아닌 사용자의 접근."""

    status_code = 403


class ValidationError(CrewUpError):
    """잘못된 좌표, 빈/너무 긴 메시지, 필수값 누락."""

    status_code = 400


class NotAParticipantError(NotFoundError):
    pass


class RecipientStatusExpiredError(ExpiredError):
    pass


class AlreadyMatchedError(ConflictError):
    pass


class SelfMatchError(ValidationError):
    pass
