"""查询结构探查：表名解析、实体字段描述、表映射与子查询遍历。"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterator, Optional

from sqlalchemy import Table

from scopeguard.core.exceptions import EntityMetadataError
from scopeguard.query.wrapper import QueryTable, QueryWrapper, SelectQueryTable

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def to_snake_case(name: str) -> str:
    """``ReportStatics`` -> ``report_statics``。"""
    return _CAMEL_BOUNDARY.sub("_", name or "").lower()


def get_table_name(entity: type) -> str:
    """先取实体声明的表名，取不到再根据类名驼峰转下划线。"""
    table = getattr(entity, "__table__", None)
    if isinstance(table, Table):
        return table.name
    name = getattr(entity, "__tablename__", None)
    if name:
        return str(name)
    simple_name = getattr(entity, "__name__", "")
    if not simple_name:
        raise EntityMetadataError(entity, "cannot resolve table name")
    return to_snake_case(simple_name)


@lru_cache(maxsize=None)
def entity_fields(entity: type) -> frozenset[str]:
    """实体声明的列名集合，每个类型只解析一次。"""
    table = getattr(entity, "__table__", None)
    if isinstance(table, Table):
        return frozenset(column.key for column in table.columns)
    annotations: dict = {}
    for klass in reversed(getattr(entity, "__mro__", ())):
        annotations.update(getattr(klass, "__annotations__", {}) or {})
    return frozenset(annotations)


def has_field(entity: type, field_name: str) -> bool:
    return field_name in entity_fields(entity)


def sub_queries(query: QueryWrapper) -> Iterator[QueryWrapper]:
    """FROM 中声明的嵌套子查询。"""
    for table in query.tables:
        if isinstance(table, SelectQueryTable) and table.query is not None:
            yield table.query


def build_table_map(query: QueryWrapper) -> Optional[dict[str, QueryTable]]:
    """构建 表名 -> 表 的映射，包含 FROM 表以及（存在 JOIN 时的）关联表。

    任一 FROM 表名为空（例如 ``SELECT * FROM (子查询)`` 这类结构）时返回 ``None``，
    调用方应放弃本次过滤。
    """
    table_map: dict[str, QueryTable] = {}
    for table in query.tables:
        if not (table.name or "").strip():
            return None
        table_map[table.name] = table
    if query.joins:
        for table in query.join_tables:
            if (table.name or "").strip():
                table_map[table.name] = table
    return table_map
