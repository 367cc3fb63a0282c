"""
로깅 설정

원장 서비스/운영 스크립트 공통. 레벨과 디렉토리는 settings.yaml의 logging 섹션을 따른다.

서비스 코드는 문맥 정보를 extra로 넘긴다:
    logger.info("거래 생성", extra={"owner_id": owner_id, "transaction_id": tx.id})

ContextFormatter가 CONTEXT_FIELDS에 해당하는 extra 값을 메시지 뒤에 붙인다:
    2026-02-21 10:00:00 | INFO     | core.ledger.workflow | 거래 생성 [owner_id=user-1 transaction_id=tx-...]
"""

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from core.config.loader import get_settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_BACKUP_COUNT = 14

# 메시지 뒤에 표시할 extra 키 (출력 순서)
CONTEXT_FIELDS = (
    "owner_id",
    "account_id",
    "transaction_id",
    "type",
    "attempt",
    "step",
)

# 쿼리마다 로그를 남기는 라이브러리
NOISY_LOGGERS = ["aiosqlite", "asyncio"]


class ContextFormatter(logging.Formatter):
    """extra 문맥 필드를 [key=value ...] 형태로 덧붙이는 Formatter"""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = " ".join(
            f"{name}={getattr(record, name)}"
            for name in CONTEXT_FIELDS
            if getattr(record, name, None) is not None
        )
        if not context:
            return message
        # 예외 traceback이 붙은 경우 첫 줄 뒤에 삽입
        first, sep, rest = message.partition("\n")
        return f"{first} [{context}]{sep}{rest}"


def setup_logging(
    process_name: str,
    level: int | str | None = None,
    log_dir: Path | None = None,
) -> logging.Logger:
    """루트 로거 초기화 (콘솔 + 일 단위 롤링 파일)

    Args:
        process_name: 로그 파일명 ({process_name}.log)
        level: 로그 레벨 (None이면 settings의 logging.level)
        log_dir: 로그 디렉토리 (None이면 settings의 logging.dir)

    Returns:
        설정된 루트 Logger
    """
    settings = get_settings()
    level = level if level is not None else settings.config.log_level
    log_file = get_log_file_path(process_name, log_dir or settings.config.log_dir)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    # 재호출 시 핸들러 중복 방지
    root_logger.handlers.clear()

    formatter = ContextFormatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    file_handler = TimedRotatingFileHandler(
        filename=log_file,
        when="midnight",
        backupCount=LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.suffix = "%Y-%m-%d"
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    root_logger.debug(f"로깅 초기화: {log_file} (level={logging.getLevelName(root_logger.level)})")
    return root_logger


def get_log_file_path(process_name: str, log_dir: Path | None = None) -> Path:
    """로그 파일 경로"""
    return (log_dir or get_settings().config.log_dir) / f"{process_name}.log"
