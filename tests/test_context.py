"""请求级上下文与用户画像的测试。"""

from entities import Category, Notice

from scopeguard.core import datascope as ctx
from scopeguard.core.datascope import ControlPermissions, ScopeContext
from scopeguard.core.enums import CombineMode, PredicateKind, ScopeLevel
from scopeguard.datascope.dialect import authorize
from scopeguard.query.wrapper import QueryWrapper


def test_scope_context_needs_entity_and_control():
    assert ctx.current_scope_context() is None

    ctx.set_control(["P1", "P2"], "or")
    assert ctx.current_scope_context() is None

    with ctx.data_scope(Notice):
        scope = ctx.current_scope_context()
    assert scope == ScopeContext(entity=Notice, permissions=("P1", "P2"), mode=CombineMode.OR)
    assert scope.control == ControlPermissions(permissions=("P1", "P2"), mode="or")


def test_explicit_arguments_override_the_context():
    ctx.set_control(["P1"])
    ctx.start_data_scope(Category)

    scope = ctx.current_scope_context(entity=Notice)
    assert scope.entity is Notice
    assert scope.permissions == ("P1",)

    explicit = ControlPermissions(permissions=("P2",), mode="and")
    assert ctx.current_scope_context(control=explicit).mode is CombineMode.AND


def test_authorize_mixes_explicit_entity_with_request_control(profile_factory):
    ctx.set_control(["P1"])
    query = QueryWrapper.create().from_(Notice)
    authorize(query, user=profile_factory(rule_map={"M1": ScopeLevel.SELF_ONLY}), entity=Notice)
    assert query.applied == {PredicateKind.CREATE_ID}


def test_profile_accepts_integer_menu_ids(profile_factory):
    profile = profile_factory(
        permission_menu_map={"P1": 101},
        rule_map={101: "1006004"},
        user_rule_map={101: [7, 8]},
        dept_rule_map={101: {10}},
    )
    assert profile.permission_menu_map == {"P1": "101"}
    assert profile.rule_map == {"101": ScopeLevel.SELF_ONLY}
    assert profile.user_rule_map == {"101": frozenset({7, 8})}
    assert profile.dept_rule_map == {"101": frozenset({10})}


def test_integer_menu_ids_resolve_through_the_engine(profile_factory):
    profile = profile_factory(
        permission_menu_map={"P1": 101},
        rule_map={101: "1006004"},
        user_rule_map={101: {7}},
    )
    query = QueryWrapper.create().from_(Notice)
    authorize(query, user=profile, control=ControlPermissions(permissions=("P1",)), entity=Notice)
    assert query.applied == {PredicateKind.CREATE_ID, PredicateKind.CUSTOM_USER_CREATE_ID}
