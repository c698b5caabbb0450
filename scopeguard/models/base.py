"""模型基类：统一声明式基类与数据权限相关的通用字段。

本模块集中提供：
- Base：SQLAlchemy 声明式基类，带统一命名约定；
- TimestampMixin：`create_time`、`update_time`；
- DelFlagMixin：`del_flag`（'T' 已删除 / 'F' 正常）；
- CreateIdMixin：`create_id`（创建人用户 ID），“仅本人”与按用户归属的部门范围依赖该字段；
- DeptScopeMixin：`dept_scope`（JSON 数组），逻辑最小单位为部门时依赖该字段。
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, DateTime, Integer, MetaData, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import expression

from scopeguard.core.enums import DelFlagEnum

convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata_obj = MetaData(naming_convention=convention)


class Base(DeclarativeBase):
    """全局声明式基类，附带一致的命名约定，便于迁移与调试。"""

    metadata = metadata_obj


class TimestampMixin:
    create_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    update_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class DelFlagMixin:
    """逻辑删除标记。"""

    del_flag: Mapped[str] = mapped_column(
        String(1),
        default=DelFlagEnum.FALSE.value,
        server_default=expression.text("'F'"),
        nullable=False,
    )


class CreateIdMixin:
    # 允许为 NULL，以兼容系统脚本写入的数据
    create_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)


class DeptScopeMixin:
    # 行归属的部门 ID 数组，例如 [3, 7]
    dept_scope: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
