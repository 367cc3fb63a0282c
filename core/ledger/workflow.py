"""
거래 워크플로우

수입/지출/이체 거래의 생성·수정·삭제를 하나의 작업 단위로 실행.

흐름 (모두 같은 UnitOfWork 안):
    생성: 참조 검증 → 거래 저장 → 효과 적용 → 커밋
    수정: 기존 거래 조회 → 효과 취소 → 병합/검증 → 저장 → 새 효과 적용 → 커밋
    삭제: 기존 거래 조회 → 효과 취소 → 삭제 → 커밋

어느 단계에서든 실패하면 작업 단위 전체가 롤백되어 잔액과 거래 기록이 함께 원래대로 남는다.
"""

import asyncio
import dataclasses
import logging
import uuid
from typing import Any, Awaitable, Callable, TypeVar

from adapters.db.sqlite_adapter import SQLiteAdapter, UnitOfWork
from core.config.loader import WorkflowConfig, get_settings
from core.domain.models import Transaction
from core.domain.requests import (
    TransactionCreateRequest,
    TransactionUpdateRequest,
    TransferCreateRequest,
    TransferUpdateRequest,
    check_transaction_shape,
    parse_request,
)
from core.errors import (
    ConcurrencyConflictError,
    InsufficientFundsError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from core.ledger.engine import LedgerEngine
from core.storage.account_store import AccountStore
from core.storage.category_store import CategoryStore
from core.storage.transaction_store import TransactionFilter, TransactionStore
from core.types import AccountType, TransactionType
from core.utils import money
from core.utils.dates import ensure_utc, now_utc

logger = logging.getLogger(__name__)

T = TypeVar("T")

# 수정 요청에서 그대로 덮어쓰는 필드
_MERGE_FIELDS = (
    "account_id",
    "category_id",
    "from_account_id",
    "to_account_id",
    "description",
    "notes",
    "recurrence",
)


class TransactionWorkflow:
    """거래 워크플로우

    Args:
        db: SQLiteAdapter (연결된 상태)
        config: 시간 제한 / 충돌 재시도 설정 (None이면 settings의 workflow 섹션)

    사용 예시:
    ```python
    workflow = TransactionWorkflow(db, get_settings().workflow)
    tx = await workflow.create_transaction(owner_id, {
        "type": "EXPENSE",
        "amount": 12000,
        "account_id": wallet_id,
        "category_id": food_id,
    })
    ```
    """

    def __init__(self, db: SQLiteAdapter, config: WorkflowConfig | None = None):
        self.db = db
        self.config = config or get_settings().workflow

    # -------------------------------------------------------------------------
    # 거래 (INCOME / EXPENSE / TRANSFER)
    # -------------------------------------------------------------------------

    async def create_transaction(
        self,
        owner_id: str,
        request: TransactionCreateRequest | dict[str, Any],
    ) -> Transaction:
        """거래 생성 + 잔액 반영

        Raises:
            ValidationError: 입력 오류, 참조 유형 불일치
            NotFoundError: 참조 계좌/카테고리가 없는 경우
            InsufficientFundsError: ASSET 잔액 부족
        """
        req = parse_request(TransactionCreateRequest, request)

        async def operation(uow: UnitOfWork) -> Transaction:
            now = now_utc()
            tx = Transaction(
                id=f"tx-{uuid.uuid4().hex[:12]}",
                owner_id=owner_id,
                type=req.type,
                amount=req.amount,
                date=ensure_utc(req.date) if req.date else now,
                account_id=req.account_id,
                category_id=req.category_id,
                from_account_id=req.from_account_id,
                to_account_id=req.to_account_id,
                description=req.description,
                notes=req.notes,
                tags=list(req.tags),
                recurrence=req.recurrence,
                created_at=now,
                updated_at=now,
            )

            await self._validate_references(uow, tx)
            await self._check_transfer_source(uow, tx)

            await TransactionStore(uow).insert(tx)
            await LedgerEngine(uow).apply_transaction_record(tx)
            return tx

        tx = await self._run("create", owner_id, operation)
        logger.info(
            f"거래 생성: {tx.id} ({tx.type.value})",
            extra={"owner_id": owner_id, "transaction_id": tx.id, "type": tx.type.value},
        )
        return tx

    async def update_transaction(
        self,
        owner_id: str,
        transaction_id: str,
        changes: TransactionUpdateRequest | dict[str, Any],
    ) -> Transaction:
        """거래 수정 (효과 취소 → 병합 → 재적용)

        실패 시 잔액은 수정 전과 정확히 같다.

        Raises:
            NotFoundError: 거래 또는 새 참조가 없는 경우
            ValidationError: 병합 결과가 유효하지 않은 경우
            InsufficientFundsError: 최종 ASSET 잔액이 음수
        """
        req = parse_request(TransactionUpdateRequest, changes)
        return await self._update(owner_id, transaction_id, req, transfer_only=False)

    async def delete_transaction(self, owner_id: str, transaction_id: str) -> None:
        """거래 삭제 (효과 취소 → 기록 삭제)

        Raises:
            NotFoundError: 거래가 없는 경우
            InsufficientFundsError: 취소하면 ASSET 잔액이 음수가 되는 경우
        """
        await self._delete(owner_id, transaction_id, transfer_only=False)

    async def get_transaction(self, owner_id: str, transaction_id: str) -> Transaction:
        """거래 조회

        Raises:
            NotFoundError: 없거나 소유자가 다른 경우
        """
        return await TransactionStore(self.db).get(owner_id, transaction_id)

    async def list_transactions(
        self,
        owner_id: str,
        filters: TransactionFilter | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Transaction]:
        """거래 목록 (최신순)"""
        return await TransactionStore(self.db).list_transactions(owner_id, filters, limit, offset)

    # -------------------------------------------------------------------------
    # 이체 (TRANSFER 전용)
    # -------------------------------------------------------------------------

    async def create_transfer(
        self,
        owner_id: str,
        request: TransferCreateRequest | dict[str, Any],
    ) -> Transaction:
        """이체 생성

        Raises:
            ValidationError: 같은 계좌 간 이체, 입력 오류
            InsufficientFundsError: ASSET 출금 계좌 잔액 부족
        """
        req = parse_request(TransferCreateRequest, request)
        return await self.create_transaction(owner_id, req.to_transaction_request())

    async def update_transfer(
        self,
        owner_id: str,
        transaction_id: str,
        changes: TransferUpdateRequest | dict[str, Any],
    ) -> Transaction:
        """이체 수정

        Raises:
            NotFoundError: 이체가 없거나 TRANSFER가 아닌 경우
        """
        req = parse_request(TransferUpdateRequest, changes)
        return await self._update(
            owner_id, transaction_id, req.to_transaction_request(), transfer_only=True
        )

    async def delete_transfer(self, owner_id: str, transaction_id: str) -> None:
        """이체 삭제

        Raises:
            NotFoundError: 이체가 없거나 TRANSFER가 아닌 경우
        """
        await self._delete(owner_id, transaction_id, transfer_only=True)

    async def list_transfers(
        self,
        owner_id: str,
        account_id: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Transaction]:
        """이체 목록 (최신순)"""
        filters = TransactionFilter(type=TransactionType.TRANSFER, account_id=account_id)
        return await self.list_transactions(owner_id, filters, limit, offset)

    # -------------------------------------------------------------------------
    # 내부: 수정/삭제 본체
    # -------------------------------------------------------------------------

    async def _update(
        self,
        owner_id: str,
        transaction_id: str,
        req: TransactionUpdateRequest,
        transfer_only: bool,
    ) -> Transaction:
        async def operation(uow: UnitOfWork) -> Transaction:
            store = TransactionStore(uow)
            existing = await self._load(store, owner_id, transaction_id, transfer_only)
            updated = self._merge(existing, req)

            # 중간 음수는 허용하고 커밋 직전에 최종 잔액만 검사
            engine = LedgerEngine(uow, defer_balance_checks=True)
            await engine.reverse_transaction(existing)

            await self._validate_references(uow, updated, existing)
            await self._check_transfer_source(uow, updated)

            await store.update(updated)
            await engine.apply_transaction_record(updated)
            await engine.check_deferred_balances()
            return updated

        tx = await self._run("update", owner_id, operation)
        logger.info(
            f"거래 수정: {tx.id} ({tx.type.value})",
            extra={"owner_id": owner_id, "transaction_id": tx.id, "type": tx.type.value},
        )
        return tx

    async def _delete(self, owner_id: str, transaction_id: str, transfer_only: bool) -> None:
        async def operation(uow: UnitOfWork) -> Transaction:
            store = TransactionStore(uow)
            existing = await self._load(store, owner_id, transaction_id, transfer_only)
            await LedgerEngine(uow).reverse_transaction(existing)
            await store.delete(owner_id, transaction_id)
            return existing

        tx = await self._run("delete", owner_id, operation)
        logger.info(
            f"거래 삭제: {tx.id} ({tx.type.value})",
            extra={"owner_id": owner_id, "transaction_id": tx.id, "type": tx.type.value},
        )

    async def _load(
        self,
        store: TransactionStore,
        owner_id: str,
        transaction_id: str,
        transfer_only: bool,
    ) -> Transaction:
        tx = await store.get(owner_id, transaction_id)
        if transfer_only and tx.type != TransactionType.TRANSFER:
            raise NotFoundError("이체를 찾을 수 없습니다")
        return tx

    def _merge(self, existing: Transaction, req: TransactionUpdateRequest) -> Transaction:
        """저장된 거래 + 부분 수정 → 새 거래 기록 (형태 검증 포함)

        INCOME/EXPENSE ↔ TRANSFER로 유형이 바뀌면 더 이상 쓰지 않는 쪽 참조를 비운다.
        """
        fields = req.model_fields_set
        new_type = req.type if "type" in fields and req.type else existing.type

        updated = dataclasses.replace(existing, type=new_type, tags=list(existing.tags))
        if (new_type == TransactionType.TRANSFER) != (existing.type == TransactionType.TRANSFER):
            if new_type == TransactionType.TRANSFER:
                updated.account_id = None
                updated.category_id = None
            else:
                updated.from_account_id = None
                updated.to_account_id = None

        if "amount" in fields:
            if req.amount is None:
                raise ValidationError("금액은 비워둘 수 없습니다")
            updated.amount = req.amount
        if "date" in fields and req.date is not None:
            updated.date = ensure_utc(req.date)
        if "tags" in fields:
            updated.tags = list(req.tags or [])
        for name in _MERGE_FIELDS:
            if name in fields:
                setattr(updated, name, getattr(req, name))

        updated.updated_at = now_utc()

        check_transaction_shape(
            updated.type,
            updated.account_id,
            updated.category_id,
            updated.from_account_id,
            updated.to_account_id,
        )
        return updated

    # -------------------------------------------------------------------------
    # 내부: 검증
    # -------------------------------------------------------------------------

    async def _validate_references(
        self,
        uow: UnitOfWork,
        tx: Transaction,
        existing: Transaction | None = None,
    ) -> None:
        """참조 계좌/카테고리 검증

        새로 참조하는 계좌/카테고리는 활성이어야 한다.
        기존 거래가 이미 참조하던 것은 존재만 확인 (비활성이어도 유지 가능).

        Raises:
            NotFoundError: 없거나 소유자가 다른 경우
            ValidationError: 비활성, 카테고리 유형 불일치
        """
        accounts = AccountStore(uow)
        previous_accounts = set(existing.account_ids) if existing else set()

        for account_id in tx.account_ids:
            if account_id in previous_accounts:
                await accounts.get(tx.owner_id, account_id)
            else:
                await accounts.get_active(tx.owner_id, account_id)

        if tx.type == TransactionType.TRANSFER:
            return

        if not tx.category_id:
            raise ValidationError(f"{tx.type.value} 거래에는 카테고리가 필요합니다")
        categories = CategoryStore(uow)
        if existing is not None and existing.category_id == tx.category_id:
            category = await categories.get(tx.owner_id, tx.category_id)
        else:
            category = await categories.get_active(tx.owner_id, tx.category_id)

        if category.type.value != tx.type.value:
            raise ValidationError(
                f"카테고리 유형({category.type.value})이 거래 유형({tx.type.value})과 다릅니다"
            )

    async def _check_transfer_source(self, uow: UnitOfWork, tx: Transaction) -> None:
        """ASSET 출금 계좌 잔액 사전 확인 (쓰기 전에 명확한 오류로 실패)

        Raises:
            InsufficientFundsError: 잔액 < 이체 금액
        """
        if tx.type != TransactionType.TRANSFER or not tx.from_account_id:
            return

        source = await AccountStore(uow).get(tx.owner_id, tx.from_account_id)
        if source.type == AccountType.ASSET and source.balance < tx.amount:
            raise InsufficientFundsError(
                f"'{source.name}' 계좌의 잔액이 부족합니다 "
                f"(잔액 {money.format_without_symbol(source.balance)}, "
                f"이체 {money.format_without_symbol(tx.amount)})",
                account_id=source.id,
            )

    # -------------------------------------------------------------------------
    # 내부: 작업 단위 실행
    # -------------------------------------------------------------------------

    async def _run(
        self,
        operation_name: str,
        owner_id: str,
        operation: Callable[[UnitOfWork], Awaitable[T]],
    ) -> T:
        """작업 단위 실행 (시간 제한 + 충돌 시 재시도)

        시간 초과 시 작업 단위는 롤백되고 StorageError로 알린다.
        ConcurrencyConflictError는 conflict_retries 횟수만큼 처음부터 다시 실행.
        """
        attempt = 0
        while True:
            try:
                async with asyncio.timeout(self.config.timeout_sec or None):
                    async with self.db.transaction() as uow:
                        return await operation(uow)
            except ConcurrencyConflictError:
                attempt += 1
                if attempt > self.config.conflict_retries:
                    logger.error(
                        f"거래 {operation_name} 충돌 - 재시도 한도 초과",
                        extra={"owner_id": owner_id, "attempt": attempt},
                    )
                    raise
                logger.warning(
                    f"거래 {operation_name} 충돌 - 재시도 ({attempt}/{self.config.conflict_retries})",
                    extra={"owner_id": owner_id, "attempt": attempt},
                )
                await asyncio.sleep(self.config.retry_backoff_sec * attempt)
            except TimeoutError as e:
                logger.error(
                    f"거래 {operation_name} 시간 초과 ({self.config.timeout_sec}s)",
                    extra={"owner_id": owner_id},
                )
                raise StorageError("작업 시간이 초과되었습니다. 잠시 후 다시 시도해 주세요") from e
