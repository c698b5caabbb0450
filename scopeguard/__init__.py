"""ScopeGuard：在查询发往数据库前注入行级数据权限条件。"""

from scopeguard.core.datascope import (
    ControlPermissions,
    ScopeContext,
    current_scope_context,
    data_scope,
    set_control,
    set_current_user,
)
from scopeguard.core.enums import CombineMode, LogicMinUnit, OperateType, ScopeLevel
from scopeguard.datascope import DataScopeDialect, authorize
from scopeguard.query import QueryDialect, QueryWrapper, get_dialect, set_dialect
from scopeguard.schemas.profile import UserProfile

__all__ = [
    "CombineMode",
    "ControlPermissions",
    "DataScopeDialect",
    "LogicMinUnit",
    "OperateType",
    "QueryDialect",
    "QueryWrapper",
    "ScopeContext",
    "ScopeLevel",
    "UserProfile",
    "authorize",
    "current_scope_context",
    "data_scope",
    "get_dialect",
    "set_control",
    "set_current_user",
    "set_dialect",
]
