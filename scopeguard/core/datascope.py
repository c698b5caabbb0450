"""数据权限的请求级上下文（per-request）。

职责：
- 当前登录用户画像（由外部登录模块写入）；
- 当前调用声明的按钮权限与组合模式（由路由依赖写入）；
- 当前查询的目标实体（开启数据权限的标记）；
- 路由级的隔离开关（由中间件按前缀策略写入）；
- 创建记录时补全 ``create_id`` 与 ``dept_scope`` 默认值。

全部基于 ``ContextVar``，同一请求内可见，请求之间互不干扰。
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any, Iterator, Optional, Sequence

from scopeguard.core.constants import FIELD_CREATE_ID, FIELD_DEPT_SCOPE
from scopeguard.core.enums import CombineMode
from scopeguard.schemas.profile import UserProfile


@dataclass(frozen=True)
class ControlPermissions:
    """当前操作声明的按钮权限及其组合模式。"""

    permissions: tuple[str, ...] = ()
    mode: CombineMode = CombineMode.NONE

    def __post_init__(self) -> None:
        object.__setattr__(self, "permissions", tuple(str(p) for p in (self.permissions or ())))
        object.__setattr__(self, "mode", CombineMode(self.mode or ""))


@dataclass(frozen=True)
class ScopeContext:
    """单次调用的数据权限配置：目标实体、按钮权限与组合模式。"""

    entity: type
    permissions: tuple[str, ...]
    mode: CombineMode

    @property
    def control(self) -> ControlPermissions:
        return ControlPermissions(permissions=self.permissions, mode=self.mode)


_user_ctx: ContextVar[Optional[UserProfile]] = ContextVar("data_scope_user", default=None)
_control_ctx: ContextVar[Optional[ControlPermissions]] = ContextVar("data_scope_control", default=None)
_entity_ctx: ContextVar[Optional[type]] = ContextVar("data_scope_entity", default=None)
_isolation_ctx: ContextVar[bool] = ContextVar("data_scope_isolation", default=True)


# 会话用户
def set_current_user(user: Optional[UserProfile]) -> None:
    _user_ctx.set(user)


def get_current_user() -> Optional[UserProfile]:
    return _user_ctx.get()


# 按钮权限
def set_control(permissions: Sequence[str], mode: CombineMode | str = CombineMode.NONE) -> None:
    _control_ctx.set(ControlPermissions(permissions=tuple(permissions or ()), mode=mode))


# 目标实体
def start_data_scope(entity: type) -> None:
    """为当前调用开启数据权限，并指定过滤的目标实体。"""
    _entity_ctx.set(entity)


def get_data_scope_entity() -> Optional[type]:
    return _entity_ctx.get()


@contextmanager
def data_scope(entity: type) -> Iterator[None]:
    """在 ``with`` 块内为查询开启数据权限，退出时恢复原状态。"""
    token = _entity_ctx.set(entity)
    try:
        yield
    finally:
        _entity_ctx.reset(token)


def set_isolation_enabled(enabled: bool) -> None:
    _isolation_ctx.set(bool(enabled))


def is_isolation_enabled() -> bool:
    return _isolation_ctx.get()


def current_scope_context(
    entity: Optional[type] = None,
    control: Optional[ControlPermissions] = None,
) -> Optional[ScopeContext]:
    """组合目标实体与按钮权限；显式参数优先于上下文，任一缺失时返回 ``None``。"""
    entity = entity or _entity_ctx.get()
    control = control or _control_ctx.get()
    if entity is None or control is None:
        return None
    return ScopeContext(entity=entity, permissions=control.permissions, mode=control.mode)


def reset_context() -> None:
    """清空全部请求级数据权限状态（中间件在请求开始时调用）。"""
    _user_ctx.set(None)
    _control_ctx.set(None)
    _entity_ctx.set(None)
    _isolation_ctx.set(True)


def scope_defaults_for_create(model: Any) -> dict[str, Any]:
    """为创建操作提供 ``create_id`` 与 ``dept_scope`` 的默认值。"""
    user = get_current_user()
    payload: dict[str, Any] = {}
    if user is None:
        return payload
    if hasattr(model, FIELD_CREATE_ID):
        payload[FIELD_CREATE_ID] = user.user_id
    if hasattr(model, FIELD_DEPT_SCOPE) and user.depts:
        payload[FIELD_DEPT_SCOPE] = sorted(user.depts)
    return payload
