"""在 SQLite 上执行经过数据权限方言的查询，校验真实可见的数据行。"""

import pytest
from entities import Notice

from scopeguard.core import datascope as ctx
from scopeguard.core.enums import ScopeLevel
from scopeguard.crud.base import CRUDBase
from scopeguard.datascope.dialect import DataScopeDialect


def _ids(rows):
    return sorted(row.id for row in rows)


@pytest.fixture()
def user_crud(user_settings):
    return CRUDBase(Notice, dialect=DataScopeDialect(user_settings))


@pytest.fixture()
def department_crud(department_settings):
    return CRUDBase(Notice, dialect=DataScopeDialect(department_settings))


def _login(profile_factory, rule, **overrides):
    ctx.set_current_user(profile_factory(rule_map={"M1": rule}, **overrides))
    ctx.set_control(["P1"])


def test_dept_only_by_user_membership_includes_admin_rows(seeded_notices, user_crud, profile_factory):
    _login(profile_factory, ScopeLevel.DEPT_ONLY, depts={10}, dept_and_children={10, 20})
    assert _ids(user_crud.list(seeded_notices)) == [1, 2, 3]


def test_dept_and_children_by_user_membership(seeded_notices, user_crud, profile_factory):
    _login(profile_factory, ScopeLevel.DEPT_AND_CHILDREN, depts={10}, dept_and_children={10, 20})
    assert _ids(user_crud.list(seeded_notices)) == [1, 2, 3, 4]


def test_dept_only_by_department_column(seeded_notices, department_crud, profile_factory):
    """部门为最小单位时按 dept_scope 匹配，管理员数据不再额外放行。"""
    _login(profile_factory, ScopeLevel.DEPT_ONLY, depts={10}, dept_and_children={10, 20})
    assert _ids(department_crud.list(seeded_notices)) == [2, 3]


def test_dept_and_children_by_department_column(seeded_notices, department_crud, profile_factory):
    _login(profile_factory, ScopeLevel.DEPT_AND_CHILDREN, depts={10}, dept_and_children={10, 20})
    assert _ids(department_crud.list(seeded_notices)) == [2, 3, 4]


def test_self_only(seeded_notices, user_crud, profile_factory):
    _login(profile_factory, ScopeLevel.SELF_ONLY)
    assert _ids(user_crud.list(seeded_notices)) == [5]


def test_unset_rule_falls_back_to_self_only(seeded_notices, user_crud, profile_factory):
    ctx.set_current_user(profile_factory(rule_map={}))
    ctx.set_control(["P1"])
    assert _ids(user_crud.list(seeded_notices)) == [5]


def test_all_scope_sees_every_live_row(seeded_notices, user_crud, profile_factory):
    _login(profile_factory, ScopeLevel.ALL, user_rule_map={"M1": {7}})
    assert _ids(user_crud.list(seeded_notices)) == [1, 2, 3, 4, 5]


def test_custom_user_relation_widens_self_only(seeded_notices, user_crud, profile_factory):
    _login(profile_factory, ScopeLevel.SELF_ONLY, user_rule_map={"M1": {7}})
    assert _ids(user_crud.list(seeded_notices)) == [2, 5]


def test_custom_dept_relation_widens_self_only(seeded_notices, user_crud, department_crud, profile_factory):
    _login(profile_factory, ScopeLevel.SELF_ONLY, dept_rule_map={"M1": {20}})
    assert _ids(user_crud.list(seeded_notices)) == [4, 5]
    assert _ids(department_crud.list(seeded_notices)) == [4, 5]


def test_custom_relation_keeps_business_filters(seeded_notices, user_crud, profile_factory):
    _login(profile_factory, ScopeLevel.SELF_ONLY, user_rule_map={"M1": {7, 8}})
    query = user_crud.query_wrapper().where(Notice.title == "from 8")
    assert _ids(user_crud.list(seeded_notices, query)) == [3]


def test_anonymous_and_unscoped_queries_are_unfiltered(seeded_notices, user_crud, profile_factory):
    assert _ids(user_crud.list(seeded_notices)) == [1, 2, 3, 4, 5]

    _login(profile_factory, ScopeLevel.SELF_ONLY)
    assert _ids(user_crud.list(seeded_notices, scoped=False)) == [1, 2, 3, 4, 5]


def test_count_and_get_respect_scope(seeded_notices, user_crud, profile_factory):
    _login(profile_factory, ScopeLevel.DEPT_ONLY, depts={10}, dept_and_children={10})
    assert user_crud.count(seeded_notices) == 3
    assert user_crud.get(seeded_notices, 2).id == 2
    assert user_crud.get(seeded_notices, 4) is None


def test_create_fills_creator_and_dept_scope(seeded_notices, user_crud, profile_factory):
    _login(profile_factory, ScopeLevel.SELF_ONLY, depts={31, 30})
    created = user_crud.create(seeded_notices, {"id": 10, "title": "mine"})
    assert created.create_id == 5
    assert created.dept_scope == [30, 31]

    explicit = user_crud.create(seeded_notices, {"id": 11, "title": "delegated", "create_id": 9})
    assert explicit.create_id == 9
    assert 10 in _ids(user_crud.list(seeded_notices))
