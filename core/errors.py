"""
도메인 예외 정의

모든 예외는 안정적인 kind 문자열과 사용자용 메시지를 가진다.
요청 처리 레이어는 to_dict() 결과만 노출한다 (스택 트레이스, 내부 ID 노출 금지).
"""

from typing import Any


class LedgerError(Exception):
    """도메인 예외 기본 클래스

    Attributes:
        kind: 기계 판독용 오류 종류 (고정 문자열)
        http_status: 요청 레이어용 상태 코드 힌트
        retryable: 전체 작업을 처음부터 재시도해도 안전한지 여부
    """

    kind: str = "LEDGER_ERROR"
    http_status: int = 500
    retryable: bool = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        """사용자 응답용 딕셔너리"""
        return {"kind": self.kind, "message": self.message}


class ValidationError(LedgerError):
    """잘못된 입력 (타입 불일치, 잔액 직접 수정, 동일 계좌 이체 등)"""

    kind = "VALIDATION_ERROR"
    http_status = 400


class FormatError(ValidationError):
    """금액 문자열 파싱 실패"""

    kind = "FORMAT_ERROR"


class NotFoundError(LedgerError):
    """대상이 없거나 호출자 소유가 아님"""

    kind = "NOT_FOUND"
    http_status = 404


class InsufficientFundsError(LedgerError):
    """ASSET 계좌 잔액이 음수가 되는 경우"""

    kind = "INSUFFICIENT_FUNDS"
    http_status = 422

    def __init__(self, message: str, account_id: str | None = None):
        super().__init__(message)
        self.account_id = account_id


class ConcurrencyConflictError(LedgerError):
    """동시 작업 충돌로 커밋 불가 (부분 반영 없음, 재시도 가능)"""

    kind = "CONCURRENCY_CONFLICT"
    http_status = 409
    retryable = True


class StorageError(LedgerError):
    """저장소 사용 불가 또는 작업 시간 초과"""

    kind = "STORAGE_ERROR"
    http_status = 503
