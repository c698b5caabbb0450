"""测试用实体：覆盖“字段齐全”“缺少数据权限字段”两类表。"""

from typing import Optional

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from scopeguard.models.base import Base, CreateIdMixin, DelFlagMixin, DeptScopeMixin


class Notice(CreateIdMixin, DeptScopeMixin, DelFlagMixin, Base):
    __tablename__ = "notice"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(100))


class Category(Base):
    """没有 create_id 与 dept_scope 的实体。"""

    __tablename__ = "category"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(50))


class NoticeReply(CreateIdMixin, Base):
    __tablename__ = "notice_reply"

    id: Mapped[int] = mapped_column(primary_key=True)
    notice_id: Mapped[int] = mapped_column(Integer, index=True)
    content: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)


class ReportStatics:
    """未映射的普通类，用于验证按类名推导表名。"""
