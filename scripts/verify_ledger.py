"""
원장 잔액 검증

계좌에 저장된 잔액과 ledger_entry 재생 결과를 비교한다.
불일치가 하나라도 있으면 종료 코드 1.

사용법:
    python -m scripts.verify_ledger
    python -m scripts.verify_ledger --db data/ledger.db --owner user-1
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import get_settings
from core.ledger import LedgerStore, init_schema
from core.logging import setup_logging
from core.utils import money

logger = logging.getLogger(__name__)


async def main(db_path: Path, owner_id: str | None) -> int:
    """검증 실행

    Args:
        db_path: DB 파일 경로
        owner_id: 특정 사용자만 검증 (None이면 전체)

    Returns:
        종료 코드 (0: 일치, 1: 불일치 있음)
    """
    logger.info(f"원장 검증 시작: {db_path}")

    async with SQLiteAdapter(db_path) as db:
        await init_schema(db)
        drifts = await LedgerStore(db).verify_balances(owner_id)

    if not drifts:
        logger.info("모든 계좌 잔액이 원장과 일치합니다 ✓")
        return 0

    print(f"{'계좌':<20} {'사용자':<16} {'저장 잔액':>16} {'원장 잔액':>16} {'차이':>16}")
    for drift in drifts:
        print(
            f"{drift.account_id:<20} {drift.owner_id:<16} "
            f"{money.format_without_symbol(drift.stored_balance):>16} "
            f"{money.format_without_symbol(drift.ledger_balance):>16} "
            f"{money.format_without_symbol(drift.difference):>16}"
        )
    logger.error(f"잔액 불일치 {len(drifts)}건")
    return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="원장 잔액 검증")
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="DB 파일 경로 (기본: settings.yaml의 database.path)",
    )
    parser.add_argument(
        "--owner",
        default=None,
        help="검증할 사용자 ID (기본: 전체)",
    )
    args = parser.parse_args()

    setup_logging("verify_ledger")

    db_path = args.db or get_settings().db_path
    sys.exit(asyncio.run(main(db_path, args.owner)))
