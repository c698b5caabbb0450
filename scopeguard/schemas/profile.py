"""登录用户画像：数据权限计算所需的角色、权限、部门与规则映射。

该模型由外部登录模块构建（通常缓存在会话中），在一次鉴权过程中只读。
"""

from typing import Dict, FrozenSet

from pydantic import BaseModel, ConfigDict, Field, field_validator

from scopeguard.core.enums import ScopeLevel


class UserProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: int
    roles: FrozenSet[str] = Field(default_factory=frozenset)
    # 按钮权限标识
    permissions: FrozenSet[str] = Field(default_factory=frozenset)
    # 用户直属部门
    depts: FrozenSet[int] = Field(default_factory=frozenset)
    # 用户所属部门及其全部下级部门
    dept_and_children: FrozenSet[int] = Field(default_factory=frozenset)
    # 权限标识 -> 菜单 ID
    permission_menu_map: Dict[str, str] = Field(default_factory=dict)
    # 菜单 ID -> 数据范围
    rule_map: Dict[str, ScopeLevel] = Field(default_factory=dict)
    # 菜单 ID -> 自定义用户 ID 集合
    user_rule_map: Dict[str, FrozenSet[int]] = Field(default_factory=dict)
    # 菜单 ID -> 自定义部门 ID 集合
    dept_rule_map: Dict[str, FrozenSet[int]] = Field(default_factory=dict)

    # 菜单 ID 可能以整数形式给出，统一按字符串比较
    @field_validator("permission_menu_map", mode="before")
    @classmethod
    def _stringify_menu_map(cls, value):
        return {str(key): str(menu_id) for key, menu_id in dict(value or {}).items()}

    @field_validator("rule_map", mode="before")
    @classmethod
    def _parse_rule_codes(cls, value):
        if not value:
            return {}
        return {str(menu_id): ScopeLevel.parse(code) for menu_id, code in dict(value).items()}

    @field_validator("user_rule_map", "dept_rule_map", mode="before")
    @classmethod
    def _stringify_relation_keys(cls, value):
        return {str(menu_id): ids for menu_id, ids in dict(value or {}).items()}

    def has_role(self, role: str) -> bool:
        token = (role or "").strip().lower()
        return any((item or "").strip().lower() == token for item in self.roles)
