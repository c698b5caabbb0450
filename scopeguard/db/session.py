"""Database engine and session factory configuration."""

import json

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from scopeguard.core.config import get_settings


def _sqlite_json_contains(target, candidate, path="$"):
    """SQLite 版本的 ``JSON_CONTAINS``：仅支持数组包含标量与路径 ``$``。"""
    if target is None or candidate is None:
        return None
    try:
        document = json.loads(target)
        value = json.loads(candidate)
    except (TypeError, ValueError):
        return 0
    if path not in (None, "$"):
        return 0
    if isinstance(document, list):
        return int(value in document)
    return int(document == value)


def register_sqlite_functions(engine: Engine) -> Engine:
    """为 SQLite 连接注册数据权限谓词依赖的 SQL 函数。"""
    if engine.dialect.name != "sqlite":
        return engine

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record) -> None:  # pragma: no cover - driver glue
        dbapi_connection.create_function("json_contains", 3, _sqlite_json_contains, deterministic=True)

    return engine


def build_engine(url: str, **kwargs) -> Engine:
    return register_sqlite_functions(create_engine(url, **kwargs))


settings = get_settings()

# ``pool_pre_ping`` keeps the connection pool healthy; ``echo`` mirrors SQL logs
# when enabled in settings for easier debugging.
engine = build_engine(settings.sql_database_url, pool_pre_ping=True, echo=settings.database_echo)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
