"""数据权限方言：在查询发往数据库之前，按当前用户的数据范围追加过滤条件。

流程：
1. 未开启数据权限 / 未登录 / 非查询操作 / 无数据权限上下文 / 超级管理员 -> 直接交给下一阶段；
2. 递归处理 FROM 中的子查询；
3. 构建表映射，定位目标实体对应的表（结构异常或找不到目标表时放弃过滤）；
4. 解析生效的数据范围并注入范围谓词；
5. 解析自定义用户、自定义部门两个维度，分别以 OR 放宽可见范围。

无论哪条路径（包括内部异常），``QueryDialect.prepare_auth`` 都恰好被调用一次。
内部异常时撤销本次已追加的权限条件：默认不过滤（放行），
``DATA_SCOPE_FAIL_CLOSED`` 开启时整条权限条件替换为恒假条件。
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import false

from scopeguard.core import datascope as ctx
from scopeguard.core.config import Settings, get_settings
from scopeguard.core.constants import CONTEXT_DEGRADED
from scopeguard.core.datascope import ControlPermissions
from scopeguard.core.enums import LogicMinUnit, OperateType, ScopeLevel
from scopeguard.core.logger import logger, scope_extra
from scopeguard.datascope import injector
from scopeguard.datascope.inspector import build_table_map, get_table_name, sub_queries
from scopeguard.datascope.resolver import determine_relation_ids, determine_rule_scope
from scopeguard.query.dialect import QueryDialect
from scopeguard.query.wrapper import QueryWrapper
from scopeguard.schemas.profile import UserProfile


class DataScopeDialect(QueryDialect):
    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    def prepare_auth(
        self,
        query: QueryWrapper,
        operate_type: OperateType,
        *,
        user: Optional[UserProfile] = None,
        control: Optional[ControlPermissions] = None,
        entity: Optional[type] = None,
    ) -> None:
        """为查询追加数据权限条件，参数缺省时从请求上下文读取。"""
        conditions = list(query.permission_conditions)
        applied = set(query.applied)
        try:
            self._authorize(query, operate_type, user=user, control=control, entity=entity)
        except Exception:
            query.permission_conditions[:] = conditions
            query.applied.clear()
            query.applied.update(applied)
            self._degrade(query, operate_type, user or ctx.get_current_user())
        finally:
            super().prepare_auth(query, operate_type)

    def _authorize(
        self,
        query: QueryWrapper,
        operate_type: OperateType,
        *,
        user: Optional[UserProfile],
        control: Optional[ControlPermissions],
        entity: Optional[type],
    ) -> None:
        settings = self.settings
        operate_type = OperateType(operate_type)
        if not settings.data_scope_enabled or not ctx.is_isolation_enabled():
            return
        user = user or ctx.get_current_user()
        if user is None:
            logger.debug("[DataScope] skip: not authenticated")
            return
        if operate_type is not OperateType.SELECT:
            return
        if not query.tables:
            return
        scope = ctx.current_scope_context(entity, control)
        if scope is None:
            logger.debug("[DataScope] skip: no scope context", extra=scope_extra(user.user_id))
            return
        if user.has_role(settings.data_scope_super_role):
            return

        for sub_query in sub_queries(query):
            self.prepare_auth(sub_query, operate_type, user=user, control=scope.control, entity=scope.entity)

        table_map = build_table_map(query)
        if table_map is None:
            logger.debug("[DataScope] skip: placeholder table in query", extra=scope_extra(user.user_id))
            return
        table_name = get_table_name(scope.entity)
        table = table_map.get(table_name)
        if table is None:
            return

        unit = LogicMinUnit(settings.data_scope_logic_min_unit)
        rule = determine_rule_scope(scope.permissions, user.permission_menu_map, user.rule_map, scope.mode)
        logger.debug(
            "[DataScope] rule=%s mode=%s",
            rule.name,
            scope.mode.value,
            extra=scope_extra(user.user_id, table_name, operate_type),
        )

        if rule is ScopeLevel.ALL:
            return
        if rule is ScopeLevel.DEPT_AND_CHILDREN:
            injector.apply_dept_scope(
                query, table, user.dept_and_children, unit, scope.entity, settings.data_scope_admin_user_tag
            )
        elif rule is ScopeLevel.DEPT_ONLY:
            injector.apply_dept_scope(query, table, user.depts, unit, scope.entity, settings.data_scope_admin_user_tag)
        else:
            injector.apply_personal_scope(query, table, user.user_id, scope.entity)

        if user.user_rule_map:
            user_ids = determine_relation_ids(
                scope.permissions, user.permission_menu_map, user.user_rule_map, scope.mode
            )
            injector.apply_custom_user_relation(query, table, user_ids, scope.entity)
        if user.dept_rule_map:
            dept_ids = determine_relation_ids(
                scope.permissions, user.permission_menu_map, user.dept_rule_map, scope.mode
            )
            injector.apply_custom_dept_relation(query, table, dept_ids, unit, scope.entity)

    def _degrade(self, query: QueryWrapper, operate_type: OperateType, user: Optional[UserProfile]) -> None:
        query.context[CONTEXT_DEGRADED] = True
        fail_closed = self.settings.data_scope_fail_closed
        logger.exception(
            "[DataScope] authorization degraded (%s)",
            "deny all" if fail_closed else "unfiltered",
            extra=scope_extra(getattr(user, "user_id", None), None, operate_type),
        )
        if fail_closed:
            # 替换整条权限链，避免恒假条件被此前 OR 进来的条件绕过
            query.permission_conditions.clear()
            query.permission_where(false())


def authorize(
    query: QueryWrapper,
    operate_type: OperateType = OperateType.SELECT,
    *,
    user: Optional[UserProfile] = None,
    control: Optional[ControlPermissions] = None,
    entity: Optional[type] = None,
    settings: Optional[Settings] = None,
) -> None:
    """对查询对象原地追加数据权限条件，不返回值也不向调用方抛出异常。"""
    DataScopeDialect(settings).prepare_auth(query, operate_type, user=user, control=control, entity=entity)
