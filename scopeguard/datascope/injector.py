"""数据权限谓词注入。

- 部门范围（本部门及以下 / 仅本部门）：按逻辑最小单位生成两种形式
  - user：``EXISTS(用户-部门关联)``，并放行管理员创建的数据；
  - department：对每个部门生成一个 ``JSON_CONTAINS(dept_scope, id)``，彼此 OR；
- 仅本人：``create_id = 当前用户``；
- 自定义用户 / 自定义部门：以 OR 追加到权限条件上，只放宽可见范围。

每种谓词在同一查询对象上只注入一次（见 ``PredicateKind``）。
目标实体缺少所需字段时跳过该谓词并记录告警，不抛异常。
"""

from __future__ import annotations

from typing import AbstractSet, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.sql.elements import ColumnElement

from scopeguard.core.constants import FIELD_CREATE_ID, FIELD_DEPT_SCOPE
from scopeguard.core.enums import DelFlagEnum, LogicMinUnit, PredicateKind
from scopeguard.core.logger import logger
from scopeguard.datascope.inspector import has_field
from scopeguard.models.user import SysUser, SysUserDept
from scopeguard.query.wrapper import QueryTable, QueryWrapper

_user_dept = SysUserDept.__table__.alias("scope_user_dept")
_admin_user = SysUser.__table__.alias("scope_admin_user")


def _field_exists(entity: Optional[type], field_name: str) -> bool:
    if entity is None:
        return False
    if has_field(entity, field_name):
        return True
    logger.warning(
        "[DataScope]: Entity `%s` field `%s` not found.",
        getattr(entity, "__name__", entity),
        field_name,
    )
    return False


def member_of_depts(column: ColumnElement, dept_ids: AbstractSet[int]) -> ColumnElement:
    """行创建人属于给定部门之一。"""
    return (
        select(_user_dept.c.user_id)
        .where(_user_dept.c.dept_id.in_(sorted(dept_ids)), _user_dept.c.user_id == column)
        .exists()
    )


def created_by_admin(column: ColumnElement, admin_user_tag: str) -> ColumnElement:
    """行创建人是未删除的管理员用户。"""
    return (
        select(_admin_user.c.id)
        .where(
            _admin_user.c.id == column,
            _admin_user.c.user_tag_cd == admin_user_tag,
            _admin_user.c.del_flag == DelFlagEnum.FALSE.value,
        )
        .exists()
    )


def dept_scope_contains(column: ColumnElement, dept_ids: AbstractSet[int]) -> ColumnElement:
    """JSON 部门列包含给定部门之一。"""
    return or_(*(func.json_contains(column, str(dept_id), "$") for dept_id in sorted(dept_ids)))


def apply_dept_scope(
    query: QueryWrapper,
    table: QueryTable,
    dept_ids: AbstractSet[int],
    unit: LogicMinUnit,
    entity: Optional[type],
    admin_user_tag: str,
) -> bool:
    """本部门及以下、仅本部门。返回是否注入了谓词。"""
    if not dept_ids:
        return False
    if unit is LogicMinUnit.USER:
        if not _field_exists(entity, FIELD_CREATE_ID):
            return False
        if query.is_applied(PredicateKind.CREATE_ID):
            return False
        column = table.c[FIELD_CREATE_ID]
        query.permission_where(or_(member_of_depts(column, dept_ids), created_by_admin(column, admin_user_tag)))
        query.mark_applied(PredicateKind.CREATE_ID)
        return True

    if not _field_exists(entity, FIELD_DEPT_SCOPE):
        return False
    if query.is_applied(PredicateKind.DEPT_SCOPE):
        return False
    query.permission_where(dept_scope_contains(table.c[FIELD_DEPT_SCOPE], dept_ids))
    query.mark_applied(PredicateKind.DEPT_SCOPE)
    return True


def apply_personal_scope(query: QueryWrapper, table: QueryTable, user_id: int, entity: Optional[type]) -> bool:
    """仅本人。"""
    if not _field_exists(entity, FIELD_CREATE_ID):
        return False
    if query.is_applied(PredicateKind.CREATE_ID):
        return False
    query.permission_where(table.c[FIELD_CREATE_ID] == user_id)
    query.mark_applied(PredicateKind.CREATE_ID)
    return True


def apply_custom_user_relation(
    query: QueryWrapper,
    table: QueryTable,
    user_ids: AbstractSet[int],
    entity: Optional[type],
) -> bool:
    """自定义-用户维度：放行指定用户创建的数据。"""
    if not user_ids or not query.permission_conditions:
        return False
    if not _field_exists(entity, FIELD_CREATE_ID):
        return False
    if query.is_applied(PredicateKind.CUSTOM_USER_CREATE_ID):
        return False
    query.permission_or(table.c[FIELD_CREATE_ID].in_(sorted(user_ids)))
    query.mark_applied(PredicateKind.CUSTOM_USER_CREATE_ID)
    return True


def apply_custom_dept_relation(
    query: QueryWrapper,
    table: QueryTable,
    dept_ids: AbstractSet[int],
    unit: LogicMinUnit,
    entity: Optional[type],
) -> bool:
    """自定义-部门维度：放行指定部门的数据，不附带管理员放行。"""
    if not dept_ids or not query.permission_conditions:
        return False
    if unit is LogicMinUnit.USER:
        if not _field_exists(entity, FIELD_CREATE_ID):
            return False
        if query.is_applied(PredicateKind.CUSTOM_DEPT_CREATE_ID):
            return False
        query.permission_or(member_of_depts(table.c[FIELD_CREATE_ID], dept_ids))
        query.mark_applied(PredicateKind.CUSTOM_DEPT_CREATE_ID)
        return True

    if not _field_exists(entity, FIELD_DEPT_SCOPE):
        return False
    if query.is_applied(PredicateKind.CUSTOM_DEPT_DEPT_SCOPE):
        return False
    query.permission_or(dept_scope_contains(table.c[FIELD_DEPT_SCOPE], dept_ids))
    query.mark_applied(PredicateKind.CUSTOM_DEPT_DEPT_SCOPE)
    return True
