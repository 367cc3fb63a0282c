"""도메인 예외 테스트"""

import pytest

from core.errors import (
    ConcurrencyConflictError,
    FormatError,
    InsufficientFundsError,
    LedgerError,
    NotFoundError,
    StorageError,
    ValidationError,
)


class TestErrorKinds:
    """오류 종류 / 상태 코드"""

    @pytest.mark.parametrize(
        "error_cls,kind,status",
        [
            (ValidationError, "VALIDATION_ERROR", 400),
            (FormatError, "FORMAT_ERROR", 400),
            (NotFoundError, "NOT_FOUND", 404),
            (InsufficientFundsError, "INSUFFICIENT_FUNDS", 422),
            (ConcurrencyConflictError, "CONCURRENCY_CONFLICT", 409),
            (StorageError, "STORAGE_ERROR", 503),
        ],
    )
    def test_kind_and_status(self, error_cls: type[LedgerError], kind: str, status: int) -> None:
        error = error_cls("message")

        assert isinstance(error, LedgerError)
        assert error.kind == kind
        assert error.http_status == status

    def test_only_conflict_is_retryable(self) -> None:
        assert ConcurrencyConflictError("x").retryable is True
        assert ValidationError("x").retryable is False
        assert StorageError("x").retryable is False

    def test_format_error_is_validation_error(self) -> None:
        assert issubclass(FormatError, ValidationError)


class TestToDict:
    """사용자 응답 형식"""

    def test_exposes_kind_and_message_only(self) -> None:
        error = InsufficientFundsError("잔액 부족", account_id="acc-123")

        assert error.to_dict() == {"kind": "INSUFFICIENT_FUNDS", "message": "잔액 부족"}
        assert error.account_id == "acc-123"

    def test_str_is_message(self) -> None:
        assert str(NotFoundError("계좌를 찾을 수 없습니다")) == "계좌를 찾을 수 없습니다"
