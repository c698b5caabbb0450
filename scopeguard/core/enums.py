"""枚举定义：约束数据权限范围、组合模式与操作类型的可选值。"""

from enum import Enum


class ScopeLevel(str, Enum):
    """数据权限范围，取值沿用字典编码 ``1006001`` ~ ``1006004``。

    ``breadth`` 表示可见范围的宽度：ALL 最宽、SELF_ONLY 最窄，UNSET 低于一切具体范围。
    "or" 组合取最宽者，"and" 组合取最窄者。
    """

    UNSET = ""
    ALL = "1006001"
    DEPT_AND_CHILDREN = "1006002"
    DEPT_ONLY = "1006003"
    SELF_ONLY = "1006004"

    @property
    def breadth(self) -> int:
        return _BREADTH[self]

    @classmethod
    def parse(cls, value: object) -> "ScopeLevel":
        """宽松解析：未知编码或空值一律视为 UNSET。"""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "").strip())
        except ValueError:
            return cls.UNSET


_BREADTH = {
    ScopeLevel.UNSET: 0,
    ScopeLevel.SELF_ONLY: 1,
    ScopeLevel.DEPT_ONLY: 2,
    ScopeLevel.DEPT_AND_CHILDREN: 3,
    ScopeLevel.ALL: 4,
}


class CombineMode(str, Enum):
    """多个菜单命中不同规则时的合并方式。"""

    NONE = ""
    OR = "or"
    AND = "and"


class OperateType(str, Enum):
    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class LogicMinUnit(str, Enum):
    """数据权限的逻辑最小单位。"""

    USER = "user"
    DEPARTMENT = "department"


class PredicateKind(str, Enum):
    """已注入谓词的类别，用作查询对象上的幂等标记。

    范围谓词与自定义关联谓词使用不同的类别，二者互不覆盖。
    """

    CREATE_ID = "create_id"
    DEPT_SCOPE = "dept_scope"
    CUSTOM_USER_CREATE_ID = "create_id_1007002"
    CUSTOM_DEPT_CREATE_ID = "create_id_1007001"
    CUSTOM_DEPT_DEPT_SCOPE = "dept_scope_1007001"


class DelFlagEnum(str, Enum):
    TRUE = "T"
    FALSE = "F"
