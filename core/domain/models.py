"""
도메인 모델

DB 행과 1:1로 대응하는 dataclass.
금액 필드는 모두 보조 단위 정수, 시각은 UTC datetime.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from core.types import AccountSubType, AccountType, BudgetPeriod, CategoryType, TransactionType
from core.utils.dates import from_iso, to_iso


def _load_json(value: str | None, default: Any) -> Any:
    if not value:
        return default
    return json.loads(value)


def _opt_datetime(value: str | None) -> datetime | None:
    return from_iso(value) if value else None


def _opt_iso(value: datetime | None) -> str | None:
    return to_iso(value) if value else None


@dataclass
class Account:
    """계좌

    balance는 LedgerEngine만 변경한다. version은 잔액 쓰기마다 1 증가.

    Attributes:
        id: 계좌 ID
        owner_id: 소유자 ID
        type: 회계 유형 (부호 규칙)
        subtype: 세부 유형
        balance: 잔액 (보조 단위, 부호 있음)
        version: 낙관적 락 버전
    """

    id: str
    owner_id: str
    name: str
    type: AccountType
    subtype: AccountSubType
    balance: int = 0
    version: int = 0
    currency: str = "NGN"
    include_in_total: bool = True
    is_active: bool = True
    order: int = 0
    icon: str | None = None
    color: str | None = None
    notes: str | None = None
    credit_card_details: dict[str, Any] | None = None
    loan_details: dict[str, Any] | None = None
    sinking_funds: list[dict[str, Any]] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Account":
        """DB 행에서 생성"""
        return cls(
            id=row["id"],
            owner_id=row["owner_id"],
            name=row["name"],
            type=AccountType(row["type"]),
            subtype=AccountSubType(row["subtype"]),
            balance=int(row["balance"]),
            version=int(row["version"]),
            currency=row["currency"],
            include_in_total=bool(row["include_in_total"]),
            is_active=bool(row["is_active"]),
            order=int(row["sort_order"]),
            icon=row.get("icon"),
            color=row.get("color"),
            notes=row.get("notes"),
            credit_card_details=_load_json(row.get("credit_card_details"), None),
            loan_details=_load_json(row.get("loan_details"), None),
            sinking_funds=_load_json(row.get("sinking_funds"), []),
            created_at=_opt_datetime(row.get("created_at")),
            updated_at=_opt_datetime(row.get("updated_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "subtype": self.subtype.value,
            "balance": self.balance,
            "currency": self.currency,
            "include_in_total": self.include_in_total,
            "is_active": self.is_active,
            "order": self.order,
            "icon": self.icon,
            "color": self.color,
            "notes": self.notes,
            "credit_card_details": self.credit_card_details,
            "loan_details": self.loan_details,
            "sinking_funds": self.sinking_funds,
            "created_at": _opt_iso(self.created_at),
            "updated_at": _opt_iso(self.updated_at),
        }


@dataclass
class Category:
    """거래 카테고리 (부모-자식 1단계 계층)"""

    id: str
    owner_id: str
    name: str
    type: CategoryType
    parent_id: str | None = None
    icon: str | None = None
    color: str | None = None
    order: int = 0
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Category":
        """DB 행에서 생성"""
        return cls(
            id=row["id"],
            owner_id=row["owner_id"],
            name=row["name"],
            type=CategoryType(row["type"]),
            parent_id=row.get("parent_id"),
            icon=row.get("icon"),
            color=row.get("color"),
            order=int(row["sort_order"]),
            is_active=bool(row["is_active"]),
            created_at=_opt_datetime(row.get("created_at")),
            updated_at=_opt_datetime(row.get("updated_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "parent_id": self.parent_id,
            "icon": self.icon,
            "color": self.color,
            "order": self.order,
            "is_active": self.is_active,
        }


@dataclass
class Transaction:
    """거래 기록

    INCOME/EXPENSE: account_id + category_id
    TRANSFER: from_account_id + to_account_id
    두 형태 중 정확히 하나만 채워진다.
    """

    id: str
    owner_id: str
    type: TransactionType
    amount: int
    date: datetime
    account_id: str | None = None
    category_id: str | None = None
    from_account_id: str | None = None
    to_account_id: str | None = None
    description: str | None = None
    notes: str | None = None
    tags: list[str] = field(default_factory=list)
    recurrence: dict[str, Any] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Transaction":
        """DB 행에서 생성"""
        return cls(
            id=row["id"],
            owner_id=row["owner_id"],
            type=TransactionType(row["type"]),
            amount=int(row["amount"]),
            date=from_iso(row["date"]),
            account_id=row.get("account_id"),
            category_id=row.get("category_id"),
            from_account_id=row.get("from_account_id"),
            to_account_id=row.get("to_account_id"),
            description=row.get("description"),
            notes=row.get("notes"),
            tags=_load_json(row.get("tags"), []),
            recurrence=_load_json(row.get("recurrence"), None),
            created_at=_opt_datetime(row.get("created_at")),
            updated_at=_opt_datetime(row.get("updated_at")),
        )

    @property
    def account_ids(self) -> list[str]:
        """이 거래가 잔액을 변경하는 계좌 ID 목록"""
        if self.type == TransactionType.TRANSFER:
            return [a for a in (self.from_account_id, self.to_account_id) if a]
        return [self.account_id] if self.account_id else []

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "amount": self.amount,
            "date": to_iso(self.date),
            "account_id": self.account_id,
            "category_id": self.category_id,
            "from_account_id": self.from_account_id,
            "to_account_id": self.to_account_id,
            "description": self.description,
            "notes": self.notes,
            "tags": list(self.tags),
            "recurrence": self.recurrence,
            "created_at": _opt_iso(self.created_at),
            "updated_at": _opt_iso(self.updated_at),
        }


@dataclass
class Budget:
    """카테고리별 기간 예산

    spent는 캐시 값. 조회 시 EXPENSE 거래 합계로 다시 계산된다.
    """

    id: str
    owner_id: str
    category_id: str
    amount: int
    period: BudgetPeriod
    period_key: str
    carry_over_enabled: bool = False
    carry_over_amount: int = 0
    spent: int = 0
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Budget":
        """DB 행에서 생성"""
        return cls(
            id=row["id"],
            owner_id=row["owner_id"],
            category_id=row["category_id"],
            amount=int(row["amount"]),
            period=BudgetPeriod(row["period"]),
            period_key=row["period_key"],
            carry_over_enabled=bool(row["carry_over_enabled"]),
            carry_over_amount=int(row["carry_over_amount"]),
            spent=int(row["spent"]),
            is_active=bool(row["is_active"]),
            created_at=_opt_datetime(row.get("created_at")),
            updated_at=_opt_datetime(row.get("updated_at")),
        )

    @property
    def budgeted(self) -> int:
        """이월 포함 예산액"""
        return self.amount + self.carry_over_amount

    @property
    def remaining(self) -> int:
        return self.budgeted - self.spent


@dataclass
class Progress:
    """Baby Step 진행 상태 (사용자당 1개)

    수동 단계(4~7)와 목표값을 제외한 모든 값은 계좌/거래에서 다시 계산된다.
    """

    owner_id: str
    current_step: int = 1
    step1_target: int = 0
    step1_current: int = 0
    step1_completed_at: datetime | None = None
    step2_debts: list[dict[str, Any]] = field(default_factory=list)
    step2_completed_at: datetime | None = None
    step3_months: int = 6
    step3_target: int = 0
    step3_current: int = 0
    step3_completed_at: datetime | None = None
    manual_steps: dict[int, bool] = field(default_factory=dict)
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Progress":
        """DB 행에서 생성"""
        manual = _load_json(row.get("manual_steps"), {})
        return cls(
            owner_id=row["owner_id"],
            current_step=int(row["current_step"]),
            step1_target=int(row["step1_target"]),
            step1_current=int(row["step1_current"]),
            step1_completed_at=_opt_datetime(row.get("step1_completed_at")),
            step2_debts=_load_json(row.get("step2_debts"), []),
            step2_completed_at=_opt_datetime(row.get("step2_completed_at")),
            step3_months=int(row["step3_months"]),
            step3_target=int(row["step3_target"]),
            step3_current=int(row["step3_current"]),
            step3_completed_at=_opt_datetime(row.get("step3_completed_at")),
            # JSON 키는 문자열로 저장됨
            manual_steps={int(k): bool(v) for k, v in manual.items()},
            updated_at=_opt_datetime(row.get("updated_at")),
        )

    @property
    def step1_completed(self) -> bool:
        return self.step1_completed_at is not None

    @property
    def step2_completed(self) -> bool:
        return self.step2_completed_at is not None

    @property
    def step3_completed(self) -> bool:
        return self.step3_completed_at is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "current_step": self.current_step,
            "step1": {
                "target": self.step1_target,
                "current": self.step1_current,
                "completed": self.step1_completed,
                "completed_at": _opt_iso(self.step1_completed_at),
            },
            "step2": {
                "debts": list(self.step2_debts),
                "completed": self.step2_completed,
                "completed_at": _opt_iso(self.step2_completed_at),
            },
            "step3": {
                "months_of_expenses": self.step3_months,
                "target": self.step3_target,
                "current": self.step3_current,
                "completed": self.step3_completed,
                "completed_at": _opt_iso(self.step3_completed_at),
            },
            "manual_steps": {str(k): v for k, v in sorted(self.manual_steps.items())},
            "updated_at": _opt_iso(self.updated_at),
        }
