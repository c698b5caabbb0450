"""配置模块：负责加载和缓存基于环境变量的数据权限设置。"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# 探测项目根目录并加载环境文件，支持通过 ENV_FILE/ENVIRONMENT 定制优先级。
def _detect_base_dir() -> Path:
    """向上遍历目录树，寻找包含 `scopeguard` 包目录的项目根路径。"""
    current = Path(__file__).resolve()
    for candidate in current.parents:
        if (candidate / "scopeguard").is_dir():
            return candidate
    return current.parent


BASE_DIR = _detect_base_dir()


def _as_bool(value: Optional[str]) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _load_environment() -> None:
    env_file_override = os.getenv("ENV_FILE")
    if env_file_override:
        candidate = BASE_DIR / env_file_override
        if candidate.exists():
            load_dotenv(candidate, override=True, encoding="utf-8")
        return

    base_env = BASE_DIR / ".env"
    if base_env.exists():
        load_dotenv(base_env, override=False, encoding="utf-8")

    environment = os.getenv("ENVIRONMENT")
    if environment is None and _as_bool(os.getenv("DEBUG")):
        environment = "development"

    if environment:
        candidate_name = environment if environment.startswith(".env") else f".env.{environment}"
        candidate_path = BASE_DIR / candidate_name
        if candidate_path.exists():
            load_dotenv(candidate_path, override=True, encoding="utf-8")


_load_environment()


def _split_prefixes(raw: Optional[str]) -> list[str]:
    return [item.strip() for item in (raw or "").split(",") if item.strip()]


class Settings(BaseSettings):
    """
    数据权限引擎运行所需的配置项，每个字段都可以通过环境变量重写。
    数据库与日志配置沿用宿主应用的约定，数据权限相关字段统一以 ``DATA_SCOPE_`` 开头。
    """

    project_name: str = Field(default="ScopeGuard", alias="PROJECT_NAME")
    debug: bool = Field(default=False, alias="DEBUG")

    database_url_override: Optional[str] = Field(default=None, alias="DATABASE_URL")
    database_driver: str = Field(default="mysql+pymysql", alias="DATABASE_DRIVER")
    database_host: str = Field(default="localhost", alias="DATABASE_HOST")
    database_port: int = Field(default=3306, alias="DATABASE_PORT")
    database_user: str = Field(default="root", alias="DATABASE_USER")
    database_password: str = Field(default="root", alias="DATABASE_PASSWORD")
    database_name: str = Field(default="scopeguard", alias="DATABASE_NAME")
    database_echo: bool = Field(default=False, alias="DATABASE_ECHO")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_dir: str = Field(default="log", alias="LOG_DIR")
    log_file_name: str = Field(default="scopeguard.log", alias="LOG_FILE_NAME")
    log_json: bool = Field(default=False, alias="LOG_JSON")
    timezone: str = Field(default="Asia/Shanghai", alias="TIMEZONE")

    # 数据权限开关与策略
    data_scope_enabled: bool = Field(default=True, alias="DATA_SCOPE_ENABLED")
    # 逻辑最小单位：user 通过用户-部门关联表判断归属；department 通过行上的 JSON 部门列判断
    data_scope_logic_min_unit: Literal["user", "department"] = Field(
        default="user", alias="DATA_SCOPE_LOGIC_MIN_UNIT"
    )
    data_scope_super_role: str = Field(default="admin", alias="DATA_SCOPE_SUPER_ROLE")
    data_scope_admin_user_tag: str = Field(default="1001002", alias="DATA_SCOPE_ADMIN_USER_TAG")
    # 引擎内部异常时的策略：默认放行（不追加过滤），开启后追加恒假条件
    data_scope_fail_closed: bool = Field(default=False, alias="DATA_SCOPE_FAIL_CLOSED")
    data_scope_bypass_prefixes_raw: str = Field(default="/health", alias="DATA_SCOPE_BYPASS_PREFIXES")
    data_scope_enforce_prefixes_raw: str = Field(default="", alias="DATA_SCOPE_ENFORCE_PREFIXES")

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    @property
    def sql_database_url(self) -> str:
        """优先使用 DATABASE_URL，否则根据分项配置拼接连接串。"""
        if self.database_url_override:
            return self.database_url_override
        return (
            f"{self.database_driver}://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    def _resolve_path(self, raw: str) -> Path:
        path = Path(raw)
        if not path.is_absolute():
            path = BASE_DIR / path
        return path

    @property
    def log_directory(self) -> Path:
        """返回日志目录的绝对路径，支持相对路径配置。"""
        return self._resolve_path(self.log_dir)

    @property
    def log_file_path(self) -> Path:
        return self.log_directory / self.log_file_name

    @property
    def timezone_info(self) -> ZoneInfo:
        """返回当前配置对应的时区信息，无法解析时回退到 UTC。"""
        try:
            return ZoneInfo(self.timezone)
        except ZoneInfoNotFoundError:
            return ZoneInfo("UTC")

    # -------------------
    # 数据隔离策略帮助方法
    # -------------------
    @property
    def data_scope_bypass_prefixes(self) -> list[str]:
        return _split_prefixes(self.data_scope_bypass_prefixes_raw)

    @property
    def data_scope_enforce_prefixes(self) -> list[str]:
        return _split_prefixes(self.data_scope_enforce_prefixes_raw)


@lru_cache
def get_settings() -> Settings:
    """返回单例化的配置对象，避免重复解析环境变量。"""
    return Settings()
