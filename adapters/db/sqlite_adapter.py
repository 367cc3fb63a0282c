"""
SQLite 어댑터

WAL 모드로 SQLite 연결 관리.
쓰기 작업은 UnitOfWork(BEGIN IMMEDIATE ~ COMMIT/ROLLBACK) 안에서만 수행.

주의: 연결은 autocommit 모드(isolation_level=None)로 열고
트랜잭션 경계는 transaction()에서 명시적으로 관리한다.
"""

import asyncio
import logging
import sqlite3
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Protocol

import aiosqlite

from core.errors import ConcurrencyConflictError, StorageError

logger = logging.getLogger(__name__)

# 다른 연결이 쓰기 락을 잡고 있을 때 대기하는 시간 (ms)
DEFAULT_BUSY_TIMEOUT_MS = 5000


class DatabaseExecutor(Protocol):
    """SQL 실행 인터페이스

    SQLiteAdapter(읽기)와 UnitOfWork(원자적 쓰기) 모두 만족.
    Store 클래스는 이 인터페이스에만 의존한다.
    """

    async def execute(
        self, sql: str, parameters: tuple[Any, ...] | None = None
    ) -> aiosqlite.Cursor: ...

    async def fetchone(
        self, sql: str, parameters: tuple[Any, ...] | None = None
    ) -> aiosqlite.Row | None: ...

    async def fetchall(
        self, sql: str, parameters: tuple[Any, ...] | None = None
    ) -> list[aiosqlite.Row]: ...


def translate_error(error: sqlite3.Error) -> Exception:
    """sqlite3 예외를 도메인 예외로 변환

    busy/locked → ConcurrencyConflictError (재시도 가능)
    그 외 → StorageError
    """
    message = str(error).lower()
    if isinstance(error, sqlite3.OperationalError) and (
        "locked" in message or "busy" in message
    ):
        return ConcurrencyConflictError("다른 작업과 충돌했습니다. 다시 시도해 주세요")
    return StorageError("저장소 작업에 실패했습니다")


async def create_connection(
    db_path: Path | str,
    busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS,
) -> aiosqlite.Connection:
    """SQLite 연결 생성 (WAL 모드, autocommit)

    Args:
        db_path: DB 파일 경로
        busy_timeout_ms: 락 대기 시간

    Returns:
        aiosqlite 연결 객체
    """
    db_path_str = str(db_path)

    # 디렉토리가 없으면 생성
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    try:
        conn = await aiosqlite.connect(db_path_str, isolation_level=None)
        conn.row_factory = aiosqlite.Row

        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")
        await conn.execute("PRAGMA foreign_keys=ON")
    except sqlite3.Error as e:
        raise translate_error(e) from e

    logger.info("SQLite 연결 생성", extra={"db_path": db_path_str})

    return conn


class UnitOfWork:
    """원자적 작업 단위

    SQLiteAdapter.transaction() 안에서만 생성된다.
    이 핸들로 실행한 모든 SQL은 하나의 트랜잭션으로 커밋 또는 롤백된다.
    """

    def __init__(self, conn: aiosqlite.Connection):
        self._conn = conn

    async def execute(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> aiosqlite.Cursor:
        """SQL 실행"""
        try:
            if parameters:
                return await self._conn.execute(sql, parameters)
            return await self._conn.execute(sql)
        except sqlite3.Error as e:
            raise translate_error(e) from e

    async def fetchone(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> aiosqlite.Row | None:
        """단일 행 조회"""
        cursor = await self.execute(sql, parameters)
        return await cursor.fetchone()

    async def fetchall(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[aiosqlite.Row]:
        """전체 행 조회"""
        cursor = await self.execute(sql, parameters)
        return list(await cursor.fetchall())


class SQLiteAdapter:
    """SQLite 어댑터

    하나의 연결을 소유하며, 같은 연결을 공유하는 코루틴들의
    작업 단위를 asyncio.Lock으로 직렬화한다.
    연결/프로세스 간 직렬화는 BEGIN IMMEDIATE의 쓰기 락이 담당.

    Args:
        db_path: DB 파일 경로
        busy_timeout_ms: 락 대기 시간

    사용 예시:
    ```python
    async with SQLiteAdapter(db_path) as db:
        async with db.transaction() as uow:
            await uow.execute("UPDATE account SET ...")
            # 성공 시 자동 커밋, 예외 시 자동 롤백
    ```
    """

    def __init__(
        self,
        db_path: Path | str,
        busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS,
    ):
        self.db_path = Path(db_path)
        self.busy_timeout_ms = busy_timeout_ms
        self._conn: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        """연결 상태 확인"""
        return self._conn is not None

    async def connect(self) -> None:
        """연결 생성"""
        if self._conn is not None:
            return

        self._conn = await create_connection(self.db_path, self.busy_timeout_ms)

    async def close(self) -> None:
        """연결 종료"""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("SQLite 연결 종료")

    def _require_conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Not connected to database")
        return self._conn

    async def execute(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> aiosqlite.Cursor:
        """SQL 실행 (작업 단위 밖, 스키마/읽기 용도)"""
        conn = self._require_conn()
        async with self._lock:
            return await UnitOfWork(conn).execute(sql, parameters)

    async def fetchone(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> aiosqlite.Row | None:
        """단일 행 조회"""
        conn = self._require_conn()
        async with self._lock:
            return await UnitOfWork(conn).fetchone(sql, parameters)

    async def fetchall(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[aiosqlite.Row]:
        """전체 행 조회"""
        conn = self._require_conn()
        async with self._lock:
            return await UnitOfWork(conn).fetchall(sql, parameters)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[UnitOfWork]:
        """작업 단위 컨텍스트 매니저

        BEGIN IMMEDIATE로 쓰기 락을 먼저 잡는다.
        성공 시 COMMIT, 예외(취소 포함) 시 ROLLBACK 후 예외 전파.

        Raises:
            ConcurrencyConflictError: 락 획득/커밋 중 충돌
            StorageError: 그 밖의 저장소 오류
        """
        conn = self._require_conn()

        async with self._lock:
            uow = UnitOfWork(conn)
            await uow.execute("BEGIN IMMEDIATE")

            try:
                yield uow
            except BaseException:
                try:
                    await conn.execute("ROLLBACK")
                except sqlite3.Error:
                    logger.exception("롤백 실패")
                raise

            try:
                await conn.execute("COMMIT")
            except sqlite3.Error as e:
                # 커밋 실패 원인을 롤백 오류로 덮어쓰지 않는다
                try:
                    await conn.execute("ROLLBACK")
                except sqlite3.Error:
                    logger.exception("커밋 실패 후 롤백 실패")
                raise translate_error(e) from e

    async def table_exists(self, table_name: str) -> bool:
        """테이블 존재 여부 확인"""
        result = await self.fetchone(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
            (table_name,),
        )
        return result is not None

    # -------------------------------------------------------------------------
    # 컨텍스트 매니저
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> "SQLiteAdapter":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
