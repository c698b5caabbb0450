"""查询对象：在 SQLAlchemy Core 之上封装一个可原地修改的查询构造器。

与 ``Select`` 的生成式接口不同，``QueryWrapper`` 在管道中被原地追加条件，
并携带一个 ``context`` 字典与 ``applied`` 集合，供数据权限钩子做幂等判断。

条件以扁平链的形式保存：``where``/``and_`` 以 AND 连接，``or_`` 以 OR 连接，
渲染时遵循 SQL 优先级（AND 先于 OR 结合），即 ``A AND B OR C`` 等价于
``(A AND B) OR C``。数据权限条件另存一条链（``permission_where``/``permission_or``），
最终与业务条件以 AND 合并。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from sqlalchemy import Select, Table, and_, or_, select, text
from sqlalchemy.sql.elements import ColumnElement
from sqlalchemy.sql.expression import Alias, FromClause

from scopeguard.core.enums import PredicateKind

AND = "and"
OR = "or"

Condition = Union[ColumnElement, str]


def _as_clause(condition: Condition) -> ColumnElement:
    return text(condition) if isinstance(condition, str) else condition


def _render_chain(chain: list[tuple[str, ColumnElement]]) -> Optional[ColumnElement]:
    """按 SQL 优先级合并条件链：以 OR 为界分组，组内 AND。"""
    if not chain:
        return None
    groups: list[list[ColumnElement]] = []
    for connector, condition in chain:
        if connector == OR and groups:
            groups.append([condition])
        elif groups:
            groups[-1].append(condition)
        else:
            groups.append([condition])
    parts = [group[0] if len(group) == 1 else and_(*group) for group in groups]
    return parts[0] if len(parts) == 1 else or_(*parts)


@dataclass
class QueryTable:
    """查询中声明的一张表（或别名）。"""

    name: str
    alias: Optional[str] = None
    schema: Optional[str] = None
    source: Optional[FromClause] = None

    @property
    def selectable(self) -> FromClause:
        return self.source

    @property
    def c(self):
        return self.selectable.c

    @property
    def ref_name(self) -> str:
        """SQL 中引用该表时使用的名称：有别名用别名，否则用表名。"""
        return self.alias or self.name

    @classmethod
    def of(cls, target: Any, alias: Optional[str] = None) -> "QueryTable":
        """由 ORM 模型、``Table``、``Alias`` 或嵌套的 ``QueryWrapper`` 构造。"""
        if isinstance(target, QueryTable):
            return target
        if isinstance(target, QueryWrapper):
            return SelectQueryTable(name="", alias=alias, query=target)
        if isinstance(target, Alias) and isinstance(target.element, Table):
            base = target.element
            return cls(name=base.name, alias=target.name, schema=base.schema, source=target)
        table = getattr(target, "__table__", target)
        if not isinstance(table, Table):
            raise TypeError(f"Unsupported query table: {target!r}")
        source = table.alias(alias) if alias else table
        return cls(name=table.name, alias=alias, schema=table.schema, source=source)


@dataclass
class SelectQueryTable(QueryTable):
    """FROM 中的子查询。没有物理表名，``name`` 恒为空串。"""

    query: Optional["QueryWrapper"] = None

    @property
    def selectable(self) -> FromClause:
        # 每次渲染都重新生成，保证子查询上后续注入的条件生效
        return self.query.to_statement().subquery(self.alias)


@dataclass
class QueryJoin:
    table: QueryTable
    onclause: Optional[ColumnElement] = None
    isouter: bool = False


@dataclass
class QueryWrapper:
    columns: list[Any] = field(default_factory=list)
    tables: list[QueryTable] = field(default_factory=list)
    joins: list[QueryJoin] = field(default_factory=list)
    conditions: list[tuple[str, ColumnElement]] = field(default_factory=list)
    permission_conditions: list[tuple[str, ColumnElement]] = field(default_factory=list)
    order_by_clauses: list[Any] = field(default_factory=list)
    limit_value: Optional[int] = None
    offset_value: Optional[int] = None
    # 单次调用的上下文
    context: dict[str, Any] = field(default_factory=dict)
    # 已注入的数据权限谓词
    applied: set[PredicateKind] = field(default_factory=set)

    @classmethod
    def create(cls) -> "QueryWrapper":
        return cls()

    # ----- 结构 -----
    def select(self, *columns: Any) -> "QueryWrapper":
        self.columns.extend(columns)
        return self

    def from_(self, target: Any, alias: Optional[str] = None) -> "QueryWrapper":
        self.tables.append(QueryTable.of(target, alias))
        return self

    def join(
        self,
        target: Any,
        onclause: Optional[ColumnElement] = None,
        alias: Optional[str] = None,
        *,
        isouter: bool = False,
    ) -> "QueryWrapper":
        self.joins.append(QueryJoin(QueryTable.of(target, alias), onclause, isouter))
        return self

    def left_join(self, target: Any, onclause: Optional[ColumnElement] = None, alias: Optional[str] = None) -> "QueryWrapper":
        return self.join(target, onclause, alias, isouter=True)

    @property
    def join_tables(self) -> list[QueryTable]:
        return [item.table for item in self.joins]

    # ----- 条件 -----
    def where(self, condition: Condition) -> "QueryWrapper":
        return self._append(AND, condition)

    def and_(self, condition: Condition) -> "QueryWrapper":
        return self._append(AND, condition)

    def or_(self, condition: Condition) -> "QueryWrapper":
        return self._append(OR, condition)

    def _append(self, connector: str, condition: Condition) -> "QueryWrapper":
        self.conditions.append((connector, _as_clause(condition)))
        return self

    # ----- 数据权限条件 -----
    # 与业务条件分开保存，渲染为 (业务条件) AND (权限条件)，
    # 权限链内部的 OR 只放宽权限范围，不会绕过业务条件。
    def permission_where(self, condition: Condition) -> "QueryWrapper":
        self.permission_conditions.append((AND, _as_clause(condition)))
        return self

    def permission_or(self, condition: Condition) -> "QueryWrapper":
        self.permission_conditions.append((OR, _as_clause(condition)))
        return self

    def where_clause(self) -> Optional[ColumnElement]:
        parts = [
            clause
            for clause in (_render_chain(self.conditions), _render_chain(self.permission_conditions))
            if clause is not None
        ]
        if not parts:
            return None
        return parts[0] if len(parts) == 1 else and_(*parts)

    # ----- 排序与分页 -----
    def order_by(self, *clauses: Any) -> "QueryWrapper":
        self.order_by_clauses.extend(clauses)
        return self

    def limit(self, value: Optional[int]) -> "QueryWrapper":
        self.limit_value = value
        return self

    def offset(self, value: Optional[int]) -> "QueryWrapper":
        self.offset_value = value
        return self

    # ----- 幂等标记 -----
    def is_applied(self, kind: PredicateKind) -> bool:
        return kind in self.applied

    def mark_applied(self, kind: PredicateKind) -> None:
        self.applied.add(kind)

    # ----- 渲染 -----
    def to_statement(self) -> Select:
        if not self.tables:
            raise ValueError("QueryWrapper has no FROM table")
        froms = [table.selectable for table in self.tables]
        stmt = select(*(self.columns or froms)).select_from(*froms)
        for item in self.joins:
            stmt = stmt.join(item.table.selectable, item.onclause, isouter=item.isouter)
        clause = self.where_clause()
        if clause is not None:
            stmt = stmt.where(clause)
        if self.order_by_clauses:
            stmt = stmt.order_by(*self.order_by_clauses)
        if self.limit_value is not None:
            stmt = stmt.limit(self.limit_value)
        if self.offset_value is not None:
            stmt = stmt.offset(self.offset_value)
        return stmt
