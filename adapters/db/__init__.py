"""
데이터베이스 어댑터

SQLite WAL 모드 연결 및 작업 단위(UnitOfWork) 관리.
"""

from adapters.db.sqlite_adapter import (
    DatabaseExecutor,
    SQLiteAdapter,
    UnitOfWork,
    create_connection,
)

__all__ = [
    "DatabaseExecutor",
    "SQLiteAdapter",
    "UnitOfWork",
    "create_connection",
]
