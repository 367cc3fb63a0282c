"""
ProgressStore - Baby Step 진행 상태 저장소

사용자당 progress 행 하나 (upsert).
"""

import json
import logging
from datetime import datetime, timezone

from adapters.db.sqlite_adapter import DatabaseExecutor
from core.domain.models import Progress
from core.utils.dates import to_iso

logger = logging.getLogger(__name__)


def _opt_iso(value: datetime | None) -> str | None:
    return to_iso(value) if value else None


class ProgressStore:
    """Baby Step 진행 상태 저장소

    Args:
        db: SQLiteAdapter 또는 UnitOfWork
    """

    def __init__(self, db: DatabaseExecutor):
        self.db = db

    async def find(self, owner_id: str) -> Progress | None:
        row = await self.db.fetchone(
            "SELECT * FROM progress WHERE owner_id = ?",
            (owner_id,),
        )
        if row is None:
            return None
        return Progress.from_row(dict(row))

    async def save(self, progress: Progress) -> Progress:
        """진행 상태 저장 (없으면 생성)"""
        progress.updated_at = datetime.now(timezone.utc)

        await self.db.execute(
            """
            INSERT INTO progress (
                owner_id, current_step,
                step1_target, step1_current, step1_completed_at,
                step2_debts, step2_completed_at,
                step3_months, step3_target, step3_current, step3_completed_at,
                manual_steps, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(owner_id) DO UPDATE SET
                current_step = excluded.current_step,
                step1_target = excluded.step1_target,
                step1_current = excluded.step1_current,
                step1_completed_at = excluded.step1_completed_at,
                step2_debts = excluded.step2_debts,
                step2_completed_at = excluded.step2_completed_at,
                step3_months = excluded.step3_months,
                step3_target = excluded.step3_target,
                step3_current = excluded.step3_current,
                step3_completed_at = excluded.step3_completed_at,
                manual_steps = excluded.manual_steps,
                updated_at = excluded.updated_at
            """,
            (
                progress.owner_id,
                progress.current_step,
                progress.step1_target,
                progress.step1_current,
                _opt_iso(progress.step1_completed_at),
                json.dumps(progress.step2_debts),
                _opt_iso(progress.step2_completed_at),
                progress.step3_months,
                progress.step3_target,
                progress.step3_current,
                _opt_iso(progress.step3_completed_at),
                json.dumps({str(k): v for k, v in progress.manual_steps.items()}),
                to_iso(progress.updated_at),
            ),
        )

        logger.debug(
            f"Baby Step 진행 상태 저장: step {progress.current_step}",
            extra={"owner_id": progress.owner_id},
        )
        return progress
