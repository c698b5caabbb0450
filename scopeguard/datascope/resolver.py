"""规则解析：把按钮权限映射到菜单，再把菜单映射到数据范围或自定义关联集合。

两个解析函数结构一致：
1. 权限标识经 ``permission_menu_map`` 映射为菜单 ID（去重，忽略未映射的标识）；
2. 没有菜单 -> 空结果；只有一个菜单 -> 直接取该菜单的配置，组合模式无关；
3. 多个菜单且未指定组合模式 -> 空结果；
4. 否则按组合模式两两折叠。

纯函数，不抛异常；数据缺失时退化为空结果。
"""

from __future__ import annotations

from functools import reduce
from typing import AbstractSet, Iterable, Mapping

from scopeguard.core.enums import CombineMode, ScopeLevel


def resolve_menu_ids(permission_keys: Iterable[str], permission_menu_map: Mapping[str, str]) -> set[str]:
    """根据权限标识获取相关的菜单 ID。"""
    return {permission_menu_map[key] for key in (permission_keys or ()) if key in permission_menu_map}


def _mode(mode: CombineMode | str | None) -> CombineMode:
    try:
        return CombineMode(mode or "")
    except ValueError:
        return CombineMode.NONE


def broader_scope(left: ScopeLevel, right: ScopeLevel) -> ScopeLevel:
    """取可见范围更宽者。"""
    return left if left.breadth >= right.breadth else right


def narrower_scope(left: ScopeLevel, right: ScopeLevel) -> ScopeLevel:
    """取可见范围更窄者，UNSET 视为最窄。"""
    return left if left.breadth <= right.breadth else right


def determine_rule_scope(
    permission_keys: Iterable[str],
    permission_menu_map: Mapping[str, str],
    rule_scope_map: Mapping[str, ScopeLevel | str],
    mode: CombineMode | str | None = CombineMode.NONE,
) -> ScopeLevel:
    """根据权限与组合模式确定生效的数据范围。

    Args:
        permission_keys: 当前操作声明的按钮权限。
        permission_menu_map: 权限标识到菜单 ID 的映射。
        rule_scope_map: 菜单 ID 到数据范围的映射。
        mode: ``"or"`` 取最宽范围，``"and"`` 取最窄范围。

    Returns:
        生效的数据范围；无法确定时为 ``ScopeLevel.UNSET``。
    """
    if not rule_scope_map:
        return ScopeLevel.UNSET

    menu_ids = resolve_menu_ids(permission_keys, permission_menu_map)
    if not menu_ids:
        return ScopeLevel.UNSET

    if len(menu_ids) == 1:
        return ScopeLevel.parse(rule_scope_map.get(next(iter(menu_ids))))

    combine = _mode(mode)
    if combine is CombineMode.NONE:
        return ScopeLevel.UNSET

    fold = broader_scope if combine is CombineMode.OR else narrower_scope
    scopes = [ScopeLevel.parse(rule_scope_map.get(menu_id)) for menu_id in menu_ids]
    return reduce(fold, scopes)


def determine_relation_ids(
    permission_keys: Iterable[str],
    permission_menu_map: Mapping[str, str],
    relation_map: Mapping[str, AbstractSet[int]],
    mode: CombineMode | str | None = CombineMode.NONE,
) -> frozenset[int]:
    """根据权限与组合模式确定自定义关联的 ID 集合。

    ``"or"`` 取并集，``"and"`` 取交集；无法确定时返回空集合，表示不追加关联过滤。
    """
    empty: frozenset[int] = frozenset()
    if not relation_map:
        return empty

    menu_ids = resolve_menu_ids(permission_keys, permission_menu_map)
    if not menu_ids:
        return empty

    if len(menu_ids) == 1:
        return frozenset(relation_map.get(next(iter(menu_ids)), empty))

    combine = _mode(mode)
    if combine is CombineMode.NONE:
        return empty

    relations = [frozenset(relation_map.get(menu_id, empty)) for menu_id in menu_ids]
    if combine is CombineMode.OR:
        return reduce(frozenset.union, relations)
    return reduce(frozenset.intersection, relations)
