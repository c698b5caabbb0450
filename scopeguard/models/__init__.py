"""ORM 模型集合，导入即完成注册。"""

from scopeguard.models.base import Base, CreateIdMixin, DelFlagMixin, DeptScopeMixin, TimestampMixin
from scopeguard.models.user import SysUser, SysUserDept

__all__ = [
    "Base",
    "CreateIdMixin",
    "DelFlagMixin",
    "DeptScopeMixin",
    "SysUser",
    "SysUserDept",
    "TimestampMixin",
]
