"""
요청 스키마 (Pydantic)

서비스 진입점에서 입력 데이터 검증.
금액은 보조 단위 정수만 허용 (strict: "100", 10.0, True 등 암묵 변환 금지).
Pydantic ValidationError는 parse_request()에서 도메인 ValidationError로 변환된다.
"""

from datetime import datetime
from typing import Annotated, Any, TypeVar

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from core.constants import Limits
from core.errors import ValidationError
from core.types import AccountSubType, AccountType, BudgetPeriod, CategoryType, TransactionType
from core.utils.currency import is_supported

# 거래 금액: 0보다 큰 보조 단위 정수
Amount = Annotated[int, Field(strict=True, gt=0, le=Limits.MAX_AMOUNT)]
# 잔액/예산/목표 금액: 0 이상 보조 단위 정수
NonNegativeAmount = Annotated[int, Field(strict=True, ge=0, le=Limits.MAX_AMOUNT)]

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"

ModelT = TypeVar("ModelT", bound=BaseModel)

# 정의되지 않은 필드는 무시하지 않고 거부
STRICT_FIELDS = ConfigDict(extra="forbid")


def parse_request(model_cls: type[ModelT], data: ModelT | dict[str, Any]) -> ModelT:
    """요청 데이터를 검증된 모델로 변환

    Raises:
        ValidationError: 형식/범위 오류 (첫 번째 오류 메시지 사용)
    """
    if isinstance(data, model_cls):
        return data
    try:
        return model_cls.model_validate(data)
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ())) or "요청"
        raise ValidationError(f"{location}: {first.get('msg', '잘못된 값')}") from e


def normalize_currency(value: str | None) -> str | None:
    """통화 코드 대문자 정규화 (지원하지 않는 코드는 거부)"""
    if not value:
        return None
    code = value.strip().upper()
    if not is_supported(code):
        raise ValueError(f"지원하지 않는 통화입니다: {code}")
    return code


def check_transaction_shape(
    tx_type: TransactionType,
    account_id: str | None,
    category_id: str | None,
    from_account_id: str | None,
    to_account_id: str | None,
) -> None:
    """거래 형태 검증

    INCOME/EXPENSE는 account+category, TRANSFER는 from+to 중 정확히 한 쪽만.

    Raises:
        ValidationError: 필수 참조 누락, 두 형태 혼합, 동일 계좌 이체
    """
    if tx_type == TransactionType.TRANSFER:
        if not from_account_id or not to_account_id:
            raise ValidationError("이체에는 출금 계좌와 입금 계좌가 모두 필요합니다")
        if from_account_id == to_account_id:
            raise ValidationError("출금 계좌와 입금 계좌가 같을 수 없습니다")
        if account_id or category_id:
            raise ValidationError("이체에는 account_id/category_id를 지정할 수 없습니다")
        return

    if not account_id:
        raise ValidationError(f"{tx_type.value} 거래에는 계좌가 필요합니다")
    if not category_id:
        raise ValidationError(f"{tx_type.value} 거래에는 카테고리가 필요합니다")
    if from_account_id or to_account_id:
        raise ValidationError(
            f"{tx_type.value} 거래에는 from_account_id/to_account_id를 지정할 수 없습니다"
        )


# =========================================================================
# 계좌
# =========================================================================


class CreditCardDetails(BaseModel):
    """신용카드 상세 (subtype=CREDIT_CARD 전용)"""

    model_config = STRICT_FIELDS

    credit_limit: NonNegativeAmount = 0
    billing_cycle_day: int | None = Field(default=None, ge=1, le=31)
    statement_date: int | None = Field(default=None, ge=1, le=31)
    due_date: int | None = Field(default=None, ge=1, le=31)


class LoanDetails(BaseModel):
    """대출 상세 (subtype=LOAN 전용)"""

    model_config = STRICT_FIELDS

    original_amount: NonNegativeAmount | None = None
    interest_rate: float | None = Field(default=None, ge=0, le=100)
    minimum_payment: NonNegativeAmount | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None


class SinkingFund(BaseModel):
    """목적 자금 (계좌 내 하위 목표)"""

    model_config = STRICT_FIELDS

    name: str = Field(..., min_length=1, max_length=Limits.ACCOUNT_NAME_MAX)
    target_amount: NonNegativeAmount
    current_amount: NonNegativeAmount = 0
    target_date: datetime | None = None
    category_id: str | None = None


class AccountCreateRequest(BaseModel):
    """계좌 생성 요청"""

    model_config = STRICT_FIELDS

    name: str = Field(..., min_length=1, max_length=Limits.ACCOUNT_NAME_MAX)
    type: AccountType
    subtype: AccountSubType
    currency: str | None = Field(default=None, description="통화 코드 (None이면 기본 통화)")
    include_in_total: bool = True
    icon: str | None = None
    color: str | None = Field(default=None, pattern=HEX_COLOR)
    order: int = Field(default=0, ge=0)
    notes: str | None = Field(default=None, max_length=Limits.NOTES_MAX)
    credit_card_details: CreditCardDetails | None = None
    loan_details: LoanDetails | None = None
    sinking_funds: list[SinkingFund] = Field(default_factory=list)
    initial_balance: NonNegativeAmount = 0

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("이름은 비어 있을 수 없습니다")
        return value

    @field_validator("currency")
    @classmethod
    def _check_currency(cls, value: str | None) -> str | None:
        return normalize_currency(value)


class AccountUpdateRequest(BaseModel):
    """계좌 수정 요청 (부분 수정)

    balance, type은 여기 없다. AccountStore.update_account()에서 명시적으로 거부.
    """

    model_config = STRICT_FIELDS

    name: str | None = Field(default=None, min_length=1, max_length=Limits.ACCOUNT_NAME_MAX)
    subtype: AccountSubType | None = None
    currency: str | None = None
    include_in_total: bool | None = None
    icon: str | None = None
    color: str | None = Field(default=None, pattern=HEX_COLOR)
    order: int | None = Field(default=None, ge=0)
    notes: str | None = Field(default=None, max_length=Limits.NOTES_MAX)
    credit_card_details: CreditCardDetails | None = None
    loan_details: LoanDetails | None = None
    sinking_funds: list[SinkingFund] | None = None

    @field_validator("currency")
    @classmethod
    def _check_currency(cls, value: str | None) -> str | None:
        return normalize_currency(value)


# =========================================================================
# 카테고리
# =========================================================================


class CategoryCreateRequest(BaseModel):
    """카테고리 생성 요청"""

    model_config = STRICT_FIELDS

    name: str = Field(..., min_length=1, max_length=50)
    type: CategoryType
    parent_id: str | None = None
    icon: str | None = None
    color: str | None = Field(default=None, pattern=HEX_COLOR)
    order: int = Field(default=0, ge=0)


class CategoryUpdateRequest(BaseModel):
    """카테고리 수정 요청 (parent_id=None 명시 시 최상위로 이동)"""

    model_config = STRICT_FIELDS

    name: str | None = Field(default=None, min_length=1, max_length=50)
    type: CategoryType | None = None
    parent_id: str | None = None
    icon: str | None = None
    color: str | None = Field(default=None, pattern=HEX_COLOR)
    order: int | None = Field(default=None, ge=0)


# =========================================================================
# 거래 / 이체
# =========================================================================


class TransactionCreateRequest(BaseModel):
    """거래 생성 요청 (INCOME / EXPENSE / TRANSFER)"""

    model_config = STRICT_FIELDS

    type: TransactionType
    amount: Amount
    date: datetime | None = Field(default=None, description="거래 시각 (None이면 현재)")
    account_id: str | None = None
    category_id: str | None = None
    from_account_id: str | None = None
    to_account_id: str | None = None
    description: str | None = Field(default=None, max_length=200)
    notes: str | None = Field(default=None, max_length=Limits.NOTES_MAX)
    tags: list[str] = Field(default_factory=list)
    recurrence: dict[str, Any] | None = Field(
        default=None, description="반복 정보 (기록만, 실행하지 않음)"
    )

    @model_validator(mode="after")
    def _check_shape(self) -> "TransactionCreateRequest":
        check_transaction_shape(
            self.type,
            self.account_id,
            self.category_id,
            self.from_account_id,
            self.to_account_id,
        )
        return self


class TransactionUpdateRequest(BaseModel):
    """거래 수정 요청 (부분 수정)

    병합 후 전체 형태는 워크플로우에서 다시 검증한다.
    """

    model_config = STRICT_FIELDS

    type: TransactionType | None = None
    amount: Amount | None = None
    date: datetime | None = None
    account_id: str | None = None
    category_id: str | None = None
    from_account_id: str | None = None
    to_account_id: str | None = None
    description: str | None = Field(default=None, max_length=200)
    notes: str | None = Field(default=None, max_length=Limits.NOTES_MAX)
    tags: list[str] | None = None
    recurrence: dict[str, Any] | None = None


class TransferCreateRequest(BaseModel):
    """이체 생성 요청"""

    model_config = STRICT_FIELDS

    amount: Amount
    from_account_id: str
    to_account_id: str
    date: datetime | None = None
    description: str | None = Field(default=None, max_length=200)
    notes: str | None = Field(default=None, max_length=Limits.NOTES_MAX)
    tags: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_accounts(self) -> "TransferCreateRequest":
        check_transaction_shape(
            TransactionType.TRANSFER, None, None, self.from_account_id, self.to_account_id
        )
        return self

    def to_transaction_request(self) -> TransactionCreateRequest:
        return TransactionCreateRequest(
            type=TransactionType.TRANSFER,
            **self.model_dump(),
        )


class TransferUpdateRequest(BaseModel):
    """이체 수정 요청 (부분 수정)"""

    model_config = STRICT_FIELDS

    amount: Amount | None = None
    from_account_id: str | None = None
    to_account_id: str | None = None
    date: datetime | None = None
    description: str | None = Field(default=None, max_length=200)
    notes: str | None = Field(default=None, max_length=Limits.NOTES_MAX)
    tags: list[str] | None = None

    def to_transaction_request(self) -> TransactionUpdateRequest:
        return TransactionUpdateRequest(**self.model_dump(exclude_unset=True))


# =========================================================================
# 예산 / Baby Step
# =========================================================================


class BudgetCreateRequest(BaseModel):
    """예산 생성 요청"""

    model_config = STRICT_FIELDS

    category_id: str
    amount: NonNegativeAmount
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    period_key: str | None = Field(default=None, description="None이면 현재 기간")
    carry_over_enabled: bool = False


class BudgetUpdateRequest(BaseModel):
    """예산 수정 요청"""

    model_config = STRICT_FIELDS

    amount: NonNegativeAmount | None = None
    carry_over_enabled: bool | None = None


class BabyStepTargetsRequest(BaseModel):
    """Baby Step 목표 변경 요청"""

    model_config = STRICT_FIELDS

    starter_fund_target: NonNegativeAmount | None = None
    months_of_expenses: int | None = Field(
        default=None,
        ge=Limits.MONTHS_OF_EXPENSES_MIN,
        le=Limits.MONTHS_OF_EXPENSES_MAX,
    )
