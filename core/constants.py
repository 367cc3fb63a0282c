"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → 프로젝트 루트)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent


class Defaults:
    """기본값 상수"""

    CURRENCY: str = "NGN"
    SUBUNIT_TO_UNIT: int = 100
    LOCALE: str = "en-NG"

    LOG_LEVEL: str = "INFO"

    # Baby Step 기본값
    STARTER_FUND_TARGET: int = 100000  # ₦1,000.00 (kobo)
    MONTHS_OF_EXPENSES: int = 6
    EXPENSE_WINDOW_MONTHS: int = 6

    # 작업 단위
    WORKFLOW_TIMEOUT_SEC: float = 10.0
    CONFLICT_RETRIES: int = 1
    RETRY_BACKOFF_SEC: float = 0.05


class Limits:
    """입력 범위 제한"""

    ACCOUNT_NAME_MAX: int = 100
    NOTES_MAX: int = 500
    MONTHS_OF_EXPENSES_MIN: int = 3
    MONTHS_OF_EXPENSES_MAX: int = 12
    MANUAL_STEP_MIN: int = 4
    MANUAL_STEP_MAX: int = 7

    # 저장 가능한 최대 금액/잔액 (보조 단위, 부동소수점 정수 범위)
    MAX_AMOUNT: int = 2**53 - 1


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    DATA_DIR: Path = PROJECT_ROOT / "data"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"

    # 설정 파일
    SETTINGS_FILE: Path = CONFIG_DIR / "settings.yaml"

    # DB 파일
    DEFAULT_DB: Path = DATA_DIR / "ledger.db"
