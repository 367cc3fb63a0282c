"""
AccountStore - 계좌 저장소

account 테이블 CRUD (소유자 범위).
잔액은 여기서 쓰지 않는다. 초기 잔액도 LedgerEngine을 통해 OPENING 기록으로 반영.

쓰기 메서드는 UnitOfWork 위에서 호출해야 원자적으로 커밋/롤백된다:
```python
async with db.transaction() as uow:
    account = await AccountStore(uow).create_account(owner_id, {...})
```
"""

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from adapters.db.sqlite_adapter import DatabaseExecutor
from core.config.loader import get_settings
from core.domain.models import Account
from core.domain.requests import AccountCreateRequest, AccountUpdateRequest, parse_request
from core.errors import NotFoundError, ValidationError
from core.ledger.engine import LedgerEngine
from core.types import AccountSubType, AccountType

logger = logging.getLogger(__name__)


def _dump(value: Any) -> str | None:
    """pydantic 모델/리스트 → JSON 문자열"""
    if value is None:
        return None
    if isinstance(value, list):
        return json.dumps([item.model_dump(mode="json") for item in value])
    return json.dumps(value.model_dump(mode="json"))


def _details_for_subtype(
    subtype: AccountSubType,
    credit_card_details: Any,
    loan_details: Any,
) -> tuple[Any, Any]:
    """세부 유형과 맞지 않는 상세 블록 제거

    CREDIT_CARD만 신용카드 상세, LOAN만 대출 상세를 가진다.
    """
    return (
        credit_card_details if subtype == AccountSubType.CREDIT_CARD else None,
        loan_details if subtype == AccountSubType.LOAN else None,
    )


class AccountStore:
    """계좌 저장소

    Args:
        db: SQLiteAdapter 또는 UnitOfWork
    """

    def __init__(self, db: DatabaseExecutor):
        self.db = db

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    async def find(self, owner_id: str, account_id: str) -> Account | None:
        """계좌 조회 (없거나 소유자가 다르면 None)"""
        row = await self.db.fetchone(
            "SELECT * FROM account WHERE id = ? AND owner_id = ?",
            (account_id, owner_id),
        )
        if row is None:
            return None
        return Account.from_row(dict(row))

    async def get(self, owner_id: str, account_id: str) -> Account:
        """계좌 조회

        Raises:
            NotFoundError: 없거나 소유자가 다른 경우
        """
        account = await self.find(owner_id, account_id)
        if account is None:
            raise NotFoundError("계좌를 찾을 수 없습니다")
        return account

    async def get_active(self, owner_id: str, account_id: str) -> Account:
        """새 거래에서 참조할 수 있는 (활성) 계좌 조회

        Raises:
            NotFoundError: 없거나 소유자가 다른 경우
            ValidationError: 비활성 계좌
        """
        account = await self.get(owner_id, account_id)
        if not account.is_active:
            raise ValidationError(f"'{account.name}' 계좌는 비활성 상태입니다")
        return account

    async def list_accounts(
        self,
        owner_id: str,
        include_inactive: bool = False,
        account_type: AccountType | None = None,
    ) -> list[Account]:
        """계좌 목록 (표시 순서, 생성 순)"""
        sql = "SELECT * FROM account WHERE owner_id = ?"
        params: list[Any] = [owner_id]
        if not include_inactive:
            sql += " AND is_active = 1"
        if account_type is not None:
            sql += " AND type = ?"
            params.append(AccountType(account_type).value)
        sql += " ORDER BY sort_order ASC, created_at ASC, rowid ASC"

        rows = await self.db.fetchall(sql, tuple(params))
        return [Account.from_row(dict(row)) for row in rows]

    async def get_summary(self, owner_id: str) -> dict[str, Any]:
        """유형별 계좌 목록과 합계

        Returns:
            {"grouped": {"assets", "liabilities", "equity"}, "totals": {...}}
        """
        accounts = await self.list_accounts(owner_id)
        grouped: dict[str, list[Account]] = {
            "assets": [a for a in accounts if a.type == AccountType.ASSET],
            "liabilities": [a for a in accounts if a.type == AccountType.LIABILITY],
            "equity": [a for a in accounts if a.type == AccountType.EQUITY],
        }

        assets = sum(a.balance for a in grouped["assets"] if a.include_in_total)
        liabilities = sum(a.balance for a in grouped["liabilities"] if a.include_in_total)

        return {
            "grouped": {key: [a.to_dict() for a in items] for key, items in grouped.items()},
            "totals": {
                "assets": assets,
                "liabilities": liabilities,
                "net_worth": assets - liabilities,
            },
        }

    # -------------------------------------------------------------------------
    # 쓰기
    # -------------------------------------------------------------------------

    async def create_account(
        self,
        owner_id: str,
        request: AccountCreateRequest | dict[str, Any],
        default_currency: str | None = None,
    ) -> Account:
        """계좌 생성 (잔액 0으로 생성 후 초기 잔액을 OPENING 기록으로 반영)

        Args:
            default_currency: 요청에 통화가 없을 때 쓸 코드 (None이면 settings의 기본 통화)

        Raises:
            ValidationError: 입력 오류
        """
        req = parse_request(AccountCreateRequest, request)
        credit_card_details, loan_details = _details_for_subtype(
            req.subtype, req.credit_card_details, req.loan_details
        )

        account_id = f"acc-{uuid.uuid4().hex[:12]}"
        now = datetime.now(timezone.utc).isoformat()

        await self.db.execute(
            """
            INSERT INTO account (
                id, owner_id, name, type, subtype, balance, version, currency,
                include_in_total, is_active, sort_order, icon, color, notes,
                credit_card_details, loan_details, sinking_funds,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, 0, 0, ?, ?, 1, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                account_id,
                owner_id,
                req.name,
                req.type.value,
                req.subtype.value,
                req.currency or default_currency or get_settings().default_currency,
                int(req.include_in_total),
                req.order,
                req.icon,
                req.color,
                req.notes,
                _dump(credit_card_details),
                _dump(loan_details),
                _dump(req.sinking_funds),
                now,
                now,
            ),
        )

        account = await self.get(owner_id, account_id)
        if req.initial_balance > 0:
            await LedgerEngine(self.db).post_opening_balance(account, req.initial_balance)
            account = await self.get(owner_id, account_id)

        logger.info(
            f"계좌 생성: {account_id}",
            extra={"owner_id": owner_id, "type": req.type.value, "subtype": req.subtype.value},
        )
        return account

    async def update_account(
        self,
        owner_id: str,
        account_id: str,
        changes: AccountUpdateRequest | dict[str, Any],
    ) -> Account:
        """계좌 수정 (부분 수정)

        잔액은 원장 엔진만 변경할 수 있고, 회계 유형은 변경할 수 없다.

        Raises:
            NotFoundError: 계좌가 없는 경우
            ValidationError: balance/type 변경 시도 또는 입력 오류
        """
        account = await self.get(owner_id, account_id)

        if isinstance(changes, dict):
            changes = dict(changes)
            if "balance" in changes:
                raise ValidationError(
                    "잔액은 직접 수정할 수 없습니다. 거래 또는 이체를 이용하세요"
                )
            if "type" in changes:
                if changes.pop("type") != account.type.value:
                    raise ValidationError("계좌의 회계 유형은 변경할 수 없습니다")

        req = parse_request(AccountUpdateRequest, changes)
        fields = req.model_fields_set

        subtype = req.subtype if "subtype" in fields and req.subtype else account.subtype
        credit_card_details = (
            _dump(req.credit_card_details)
            if "credit_card_details" in fields
            else (json.dumps(account.credit_card_details) if account.credit_card_details else None)
        )
        loan_details = (
            _dump(req.loan_details)
            if "loan_details" in fields
            else (json.dumps(account.loan_details) if account.loan_details else None)
        )
        credit_card_details, loan_details = _details_for_subtype(
            subtype, credit_card_details, loan_details
        )

        sinking_funds = (
            _dump(req.sinking_funds or [])
            if "sinking_funds" in fields
            else json.dumps(account.sinking_funds)
        )

        await self.db.execute(
            """
            UPDATE account SET
                name = ?, subtype = ?, currency = ?, include_in_total = ?,
                sort_order = ?, icon = ?, color = ?, notes = ?,
                credit_card_details = ?, loan_details = ?, sinking_funds = ?,
                updated_at = ?
            WHERE id = ? AND owner_id = ?
            """,
            (
                req.name if "name" in fields and req.name else account.name,
                subtype.value,
                req.currency if "currency" in fields and req.currency else account.currency,
                int(req.include_in_total)
                if "include_in_total" in fields and req.include_in_total is not None
                else int(account.include_in_total),
                req.order if "order" in fields and req.order is not None else account.order,
                req.icon if "icon" in fields else account.icon,
                req.color if "color" in fields else account.color,
                req.notes if "notes" in fields else account.notes,
                credit_card_details,
                loan_details,
                sinking_funds,
                datetime.now(timezone.utc).isoformat(),
                account_id,
                owner_id,
            ),
        )

        logger.info(f"계좌 수정: {account_id}", extra={"owner_id": owner_id, "fields": sorted(fields)})
        return await self.get(owner_id, account_id)

    async def delete_account(self, owner_id: str, account_id: str) -> Account:
        """계좌 비활성화 (soft delete, 잔액 0일 때만)

        Raises:
            NotFoundError: 계좌가 없는 경우
            ValidationError: 잔액이 0이 아닌 경우
        """
        account = await self.get(owner_id, account_id)
        if account.balance != 0:
            raise ValidationError(
                "잔액이 남아 있는 계좌는 삭제할 수 없습니다. 먼저 다른 계좌로 이체하세요"
            )

        await self.db.execute(
            "UPDATE account SET is_active = 0, updated_at = ? WHERE id = ? AND owner_id = ?",
            (datetime.now(timezone.utc).isoformat(), account_id, owner_id),
        )

        logger.info(f"계좌 비활성화: {account_id}", extra={"owner_id": owner_id})
        return await self.get(owner_id, account_id)
