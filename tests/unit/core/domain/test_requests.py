"""요청 스키마 테스트"""

from datetime import datetime

import pytest

from core.domain.requests import (
    AccountCreateRequest,
    AccountUpdateRequest,
    BabyStepTargetsRequest,
    BudgetCreateRequest,
    CategoryCreateRequest,
    TransactionCreateRequest,
    TransferCreateRequest,
    TransferUpdateRequest,
    check_transaction_shape,
    parse_request,
)
from core.constants import Limits
from core.errors import ValidationError
from core.types import AccountSubType, AccountType, BudgetPeriod, TransactionType


def expense_payload(**overrides: object) -> dict:
    payload = {
        "type": "EXPENSE",
        "amount": 1200,
        "account_id": "acc-1",
        "category_id": "cat-1",
    }
    payload.update(overrides)
    return payload


class TestParseRequest:
    """pydantic 오류 → 도메인 ValidationError"""

    def test_returns_model(self) -> None:
        req = parse_request(TransactionCreateRequest, expense_payload())

        assert req.type == TransactionType.EXPENSE
        assert req.amount == 1200

    def test_model_instance_passthrough(self) -> None:
        req = TransactionCreateRequest(**expense_payload())
        assert parse_request(TransactionCreateRequest, req) is req

    def test_error_message_has_location(self) -> None:
        with pytest.raises(ValidationError, match="^amount:"):
            parse_request(TransactionCreateRequest, expense_payload(amount=0))


class TestStrictAmount:
    """금액은 보조 단위 정수만"""

    @pytest.mark.parametrize("amount", ["100", 10.0, 10.5, True, -5, 0, None])
    def test_rejected(self, amount: object) -> None:
        with pytest.raises(ValidationError):
            parse_request(TransactionCreateRequest, expense_payload(amount=amount))

    def test_max_amount_accepted(self) -> None:
        req = parse_request(TransactionCreateRequest, expense_payload(amount=Limits.MAX_AMOUNT))
        assert req.amount == Limits.MAX_AMOUNT

    @pytest.mark.parametrize("amount", [Limits.MAX_AMOUNT + 1, 10**19])
    def test_above_max_rejected(self, amount: int) -> None:
        with pytest.raises(ValidationError, match="^amount:"):
            parse_request(TransactionCreateRequest, expense_payload(amount=amount))

    def test_initial_balance_above_max_rejected(self) -> None:
        with pytest.raises(ValidationError, match="^initial_balance:"):
            parse_request(
                AccountCreateRequest,
                {
                    "name": "Wallet",
                    "type": "ASSET",
                    "subtype": "CASH",
                    "initial_balance": Limits.MAX_AMOUNT + 1,
                },
            )


class TestTransactionShape:
    """INCOME/EXPENSE vs TRANSFER 형태"""

    def test_expense_requires_category(self) -> None:
        with pytest.raises(ValidationError, match="카테고리"):
            parse_request(TransactionCreateRequest, expense_payload(category_id=None))

    def test_expense_rejects_transfer_fields(self) -> None:
        with pytest.raises(ValidationError):
            parse_request(TransactionCreateRequest, expense_payload(to_account_id="acc-2"))

    def test_transfer_rejects_category(self) -> None:
        with pytest.raises(ValidationError):
            check_transaction_shape(TransactionType.TRANSFER, None, "cat-1", "acc-1", "acc-2")

    def test_transfer_same_account(self) -> None:
        with pytest.raises(ValidationError, match="같을 수 없습니다"):
            check_transaction_shape(TransactionType.TRANSFER, None, None, "acc-1", "acc-1")

    def test_valid_transfer(self) -> None:
        check_transaction_shape(TransactionType.TRANSFER, None, None, "acc-1", "acc-2")

    def test_income_requires_account(self) -> None:
        with pytest.raises(ValidationError, match="계좌"):
            check_transaction_shape(TransactionType.INCOME, None, "cat-1", None, None)


class TestTransferRequests:
    """이체 요청"""

    def test_to_transaction_request(self) -> None:
        req = parse_request(
            TransferCreateRequest,
            {"amount": 500, "from_account_id": "acc-1", "to_account_id": "acc-2", "tags": ["rent"]},
        )
        tx_req = req.to_transaction_request()

        assert tx_req.type == TransactionType.TRANSFER
        assert tx_req.from_account_id == "acc-1"
        assert tx_req.tags == ["rent"]

    def test_update_keeps_only_set_fields(self) -> None:
        req = parse_request(TransferUpdateRequest, {"amount": 700})
        assert req.to_transaction_request().model_fields_set == {"amount"}

    def test_update_rejects_category(self) -> None:
        with pytest.raises(ValidationError):
            parse_request(TransferUpdateRequest, {"category_id": "cat-1"})


class TestAccountRequests:
    """계좌 요청"""

    def test_name_stripped_and_currency_upper(self) -> None:
        req = parse_request(
            AccountCreateRequest,
            {"name": "  Wallet ", "type": "ASSET", "subtype": "CASH", "currency": "usd"},
        )

        assert req.name == "Wallet"
        assert req.currency == "USD"
        assert req.initial_balance == 0

    def test_blank_name(self) -> None:
        with pytest.raises(ValidationError):
            parse_request(AccountCreateRequest, {"name": "   ", "type": "ASSET", "subtype": "CASH"})

    def test_color_pattern(self) -> None:
        with pytest.raises(ValidationError, match="color"):
            parse_request(
                AccountCreateRequest,
                {"name": "Wallet", "type": "ASSET", "subtype": "CASH", "color": "red"},
            )

    def test_negative_initial_balance(self) -> None:
        with pytest.raises(ValidationError):
            parse_request(
                AccountCreateRequest,
                {"name": "Wallet", "type": "ASSET", "subtype": "CASH", "initial_balance": -1},
            )

    def test_loan_details(self) -> None:
        req = parse_request(
            AccountCreateRequest,
            {
                "name": "Car loan",
                "type": AccountType.LIABILITY,
                "subtype": AccountSubType.LOAN,
                "loan_details": {"original_amount": 500000, "interest_rate": 12.5},
            },
        )
        assert req.loan_details is not None
        assert req.loan_details.original_amount == 500000

    def test_update_forbids_balance(self) -> None:
        with pytest.raises(ValidationError):
            parse_request(AccountUpdateRequest, {"balance": 100})


class TestBudgetAndTargets:
    """예산 / Baby Step 요청"""

    def test_budget_defaults(self) -> None:
        req = parse_request(BudgetCreateRequest, {"category_id": "cat-1", "amount": 0})

        assert req.period == BudgetPeriod.MONTHLY
        assert req.period_key is None
        assert req.carry_over_enabled is False

    @pytest.mark.parametrize("months", [2, 13])
    def test_months_out_of_range(self, months: int) -> None:
        with pytest.raises(ValidationError):
            parse_request(BabyStepTargetsRequest, {"months_of_expenses": months})

    def test_targets_optional(self) -> None:
        req = parse_request(BabyStepTargetsRequest, {"starter_fund_target": 200000})
        assert req.months_of_expenses is None

    def test_date_parsed(self) -> None:
        req = parse_request(TransactionCreateRequest, expense_payload(date="2025-01-15T10:00:00Z"))
        assert isinstance(req.date, datetime)


class TestUnknownFields:
    """정의되지 않은 필드는 무시하지 않고 거부"""

    @pytest.mark.parametrize(
        ("model_cls", "payload"),
        [
            (AccountCreateRequest, {"name": "Wallet", "type": "ASSET", "subtype": "CASH"}),
            (CategoryCreateRequest, {"name": "Food", "type": "EXPENSE"}),
            (TransactionCreateRequest, expense_payload()),
            (
                TransferCreateRequest,
                {"amount": 500, "from_account_id": "acc-1", "to_account_id": "acc-2"},
            ),
            (BudgetCreateRequest, {"category_id": "cat-1", "amount": 1000}),
            (BabyStepTargetsRequest, {"starter_fund_target": 200000}),
        ],
    )
    def test_create_requests_reject_unknown_field(
        self, model_cls: type, payload: dict
    ) -> None:
        parse_request(model_cls, payload)

        with pytest.raises(ValidationError, match="^memo:"):
            parse_request(model_cls, {**payload, "memo": "x"})

    def test_account_create_rejects_balance(self) -> None:
        with pytest.raises(ValidationError, match="^balance:"):
            parse_request(
                AccountCreateRequest,
                {"name": "Wallet", "type": "ASSET", "subtype": "CASH", "balance": 5000},
            )

    def test_nested_details_reject_unknown_field(self) -> None:
        with pytest.raises(ValidationError, match="^credit_card_details.apr:"):
            parse_request(
                AccountCreateRequest,
                {
                    "name": "Visa",
                    "type": "LIABILITY",
                    "subtype": "CREDIT_CARD",
                    "credit_card_details": {"credit_limit": 100000, "apr": 24.0},
                },
            )


class TestCurrencyCodes:
    """지원 통화만 허용"""

    def test_create_rejects_unknown_currency(self) -> None:
        with pytest.raises(ValidationError, match="지원하지 않는 통화"):
            parse_request(
                AccountCreateRequest,
                {"name": "Wallet", "type": "ASSET", "subtype": "CASH", "currency": "xyz"},
            )

    def test_update_rejects_unknown_currency(self) -> None:
        with pytest.raises(ValidationError, match="지원하지 않는 통화"):
            parse_request(AccountUpdateRequest, {"currency": "JPY"})

    def test_update_normalizes_supported_currency(self) -> None:
        assert parse_request(AccountUpdateRequest, {"currency": " gbp "}).currency == "GBP"
