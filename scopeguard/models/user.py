"""用户与用户-部门关联模型：部门范围谓词通过它们判断行创建人的归属。"""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from scopeguard.core.constants import USER_DEPT_TABLE, USER_TABLE
from scopeguard.models.base import Base, DelFlagMixin, TimestampMixin


class SysUser(TimestampMixin, DelFlagMixin, Base):
    """系统用户。``user_tag_cd`` 标记用户类别（如管理员 ``1001002``）。"""

    __tablename__ = USER_TABLE

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    user_tag_cd: Mapped[str] = mapped_column(String(20), default="1001003", nullable=False, index=True)


class SysUserDept(Base):
    __tablename__ = USER_DEPT_TABLE

    user_id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    dept_id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
