"""
설정 로더

settings.yaml 로드 및 애플리케이션 설정 생성.
파일이 없으면 모든 값을 기본값으로 사용.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from core.constants import PROJECT_ROOT, Defaults, Limits, Paths
from core.utils.currency import is_supported


@dataclass(frozen=True)
class BabyStepConfig:
    """Baby Step 계산 설정"""

    starter_fund_target: int = Defaults.STARTER_FUND_TARGET
    months_of_expenses: int = Defaults.MONTHS_OF_EXPENSES
    expense_window_months: int = Defaults.EXPENSE_WINDOW_MONTHS


@dataclass(frozen=True)
class WorkflowConfig:
    """작업 단위 실행 설정"""

    timeout_sec: float = Defaults.WORKFLOW_TIMEOUT_SEC
    conflict_retries: int = Defaults.CONFLICT_RETRIES
    retry_backoff_sec: float = Defaults.RETRY_BACKOFF_SEC


@dataclass(frozen=True)
class AppConfig:
    """애플리케이션 설정 (settings.yaml에서 로드)

    불변 데이터 구조로 설정 변경 방지
    """

    db_path: Path = Paths.DEFAULT_DB
    default_currency: str = Defaults.CURRENCY
    log_level: str = Defaults.LOG_LEVEL
    log_dir: Path = Paths.LOGS_DIR
    baby_steps: BabyStepConfig = field(default_factory=BabyStepConfig)
    workflow: WorkflowConfig = field(default_factory=WorkflowConfig)


class ConfigLoadError(Exception):
    """설정 로드 실패 예외"""

    pass


def _resolve_path(value: str) -> Path:
    """상대 경로는 프로젝트 루트 기준으로 해석"""
    path = Path(value)
    if not path.is_absolute():
        path = PROJECT_ROOT / path
    return path


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigLoadError(f"settings.yaml의 '{name}' 항목은 매핑이어야 합니다")
    return section


def _positive_int(section: dict[str, Any], key: str, default: int) -> int:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigLoadError(f"'{key}' 값은 0 이상의 정수여야 합니다: {value!r}")
    return value


def _non_negative_float(section: dict[str, Any], key: str, default: float) -> float:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise ConfigLoadError(f"'{key}' 값은 0 이상의 숫자여야 합니다: {value!r}")
    return float(value)


def parse_config(data: dict[str, Any]) -> AppConfig:
    """YAML 데이터에서 AppConfig 생성

    Raises:
        ConfigLoadError: 값의 형식이나 범위가 잘못된 경우
    """
    database = _section(data, "database")
    currency = _section(data, "currency")
    logging_section = _section(data, "logging")
    baby_steps = _section(data, "baby_steps")
    workflow = _section(data, "workflow")

    months = _positive_int(baby_steps, "months_of_expenses", Defaults.MONTHS_OF_EXPENSES)
    if not Limits.MONTHS_OF_EXPENSES_MIN <= months <= Limits.MONTHS_OF_EXPENSES_MAX:
        raise ConfigLoadError(
            f"months_of_expenses는 {Limits.MONTHS_OF_EXPENSES_MIN}~"
            f"{Limits.MONTHS_OF_EXPENSES_MAX} 사이여야 합니다: {months}"
        )

    window = _positive_int(baby_steps, "expense_window_months", Defaults.EXPENSE_WINDOW_MONTHS)
    if window == 0:
        raise ConfigLoadError("expense_window_months는 1 이상이어야 합니다")

    currency_code = str(currency.get("default", Defaults.CURRENCY)).upper()
    if not is_supported(currency_code):
        raise ConfigLoadError(f"지원하지 않는 기본 통화입니다: {currency_code}")
    log_level = str(logging_section.get("level", Defaults.LOG_LEVEL)).upper()

    return AppConfig(
        db_path=_resolve_path(database["path"]) if database.get("path") else Paths.DEFAULT_DB,
        default_currency=currency_code,
        log_level=log_level,
        log_dir=_resolve_path(logging_section["dir"]) if logging_section.get("dir") else Paths.LOGS_DIR,
        baby_steps=BabyStepConfig(
            starter_fund_target=_positive_int(
                baby_steps, "starter_fund_target", Defaults.STARTER_FUND_TARGET
            ),
            months_of_expenses=months,
            expense_window_months=window,
        ),
        workflow=WorkflowConfig(
            timeout_sec=_non_negative_float(workflow, "timeout_sec", Defaults.WORKFLOW_TIMEOUT_SEC),
            conflict_retries=_positive_int(workflow, "conflict_retries", Defaults.CONFLICT_RETRIES),
            retry_backoff_sec=_non_negative_float(
                workflow, "retry_backoff_sec", Defaults.RETRY_BACKOFF_SEC
            ),
        ),
    )


def load_config(path: Path | None = None) -> AppConfig:
    """settings.yaml 파일 로드

    Args:
        path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        AppConfig 인스턴스 (파일이 없으면 기본값)

    Raises:
        ConfigLoadError: 파싱 실패 또는 잘못된 값
    """
    if path is None:
        path = Paths.SETTINGS_FILE

    if not path.exists():
        return AppConfig()

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"settings.yaml 파싱 실패: {e}") from e

    if data is None:
        return AppConfig()

    if not isinstance(data, dict):
        raise ConfigLoadError("settings.yaml 최상위는 매핑이어야 합니다")

    return parse_config(data)


class Settings:
    """애플리케이션 설정 (싱글턴 패턴)

    settings.yaml을 로드하고 관련 설정을 제공
    """

    _instance: "Settings | None" = None
    _config: AppConfig | None = None

    def __new__(cls, settings_path: Path | None = None) -> "Settings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, settings_path: Path | None = None) -> None:
        if self._config is None:
            self._config = load_config(settings_path)

    @property
    def config(self) -> AppConfig:
        """전체 설정"""
        assert self._config is not None
        return self._config

    @property
    def db_path(self) -> Path:
        """DB 경로"""
        return self.config.db_path

    @property
    def default_currency(self) -> str:
        """기본 통화 코드"""
        return self.config.default_currency

    @property
    def baby_steps(self) -> BabyStepConfig:
        """Baby Step 설정"""
        return self.config.baby_steps

    @property
    def workflow(self) -> WorkflowConfig:
        """작업 단위 설정"""
        return self.config.workflow

    @classmethod
    def reset(cls) -> None:
        """싱글턴 인스턴스 초기화 (테스트용)"""
        cls._instance = None
        cls._config = None


def get_settings(settings_path: Path | None = None) -> Settings:
    """Settings 인스턴스 반환

    Args:
        settings_path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Settings 싱글턴 인스턴스
    """
    return Settings(settings_path)
