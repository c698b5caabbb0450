"""查询方言：查询对象在发往数据库前经过的管道阶段。

``QueryDialect.prepare_auth`` 是管道中的鉴权扩展点，默认不追加任何条件；
子类在其中追加过滤后必须把控制权交还给父类实现。
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import Select

from scopeguard.core.enums import OperateType
from scopeguard.query.wrapper import QueryWrapper


class QueryDialect:
    """方言基类，负责把 ``QueryWrapper`` 渲染为可执行语句。"""

    def prepare_auth(self, query: QueryWrapper, operate_type: OperateType) -> None:
        """鉴权扩展点，基类不做任何处理。"""
        return None

    def build_select(self, query: QueryWrapper) -> Select:
        self.prepare_auth(query, OperateType.SELECT)
        return query.to_statement()


_dialect: Optional[QueryDialect] = None


def get_dialect() -> QueryDialect:
    """返回进程级的当前方言，首次调用时默认启用数据权限方言。"""
    global _dialect
    if _dialect is None:
        from scopeguard.datascope.dialect import DataScopeDialect

        _dialect = DataScopeDialect()
    return _dialect


def set_dialect(dialect: Optional[QueryDialect]) -> None:
    global _dialect
    _dialect = dialect
