"""CRUD 基类：为各实体提供经过数据权限方言的通用数据访问方法。"""

from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from scopeguard.core.datascope import data_scope, scope_defaults_for_create
from scopeguard.core.enums import DelFlagEnum
from scopeguard.models.base import Base
from scopeguard.query.dialect import QueryDialect, get_dialect
from scopeguard.query.wrapper import QueryWrapper

ModelType = TypeVar("ModelType", bound=Base)


class CRUDBase(Generic[ModelType]):
    """封装常见的查询与创建逻辑；所有读取都会先经过方言的鉴权阶段。"""

    def __init__(self, model: Type[ModelType], *, dialect: Optional[QueryDialect] = None):
        self.model = model
        self._dialect = dialect

    @property
    def dialect(self) -> QueryDialect:
        return self._dialect or get_dialect()

    # 统一构造带逻辑删除过滤的查询对象
    def query_wrapper(self, *, include_deleted: bool = False) -> QueryWrapper:
        query = QueryWrapper.create().select(self.model).from_(self.model)
        if hasattr(self.model, "del_flag") and not include_deleted:
            query.where(self.model.del_flag == DelFlagEnum.FALSE.value)
        return query

    def list(self, db: Session, query: Optional[QueryWrapper] = None, *, scoped: bool = True) -> List[ModelType]:
        """执行查询；``scoped=False`` 时不开启数据权限（方言阶段仍会执行）。"""
        stmt = self._build(query or self.query_wrapper(), scoped)
        return list(db.scalars(stmt).all())

    def get(self, db: Session, id: Any) -> Optional[ModelType]:
        query = self.query_wrapper().where(self.model.id == id)
        rows = self.list(db, query)
        return rows[0] if rows else None

    def count(self, db: Session, query: Optional[QueryWrapper] = None, *, scoped: bool = True) -> int:
        stmt = self._build(query or self.query_wrapper(), scoped)
        return db.scalar(select(func.count()).select_from(stmt.subquery())) or 0

    def create(self, db: Session, obj_in: Dict[str, Any], *, auto_commit: bool = True) -> ModelType:
        # 自动附加数据权限默认字段（调用方显式赋值优先）
        payload = {**scope_defaults_for_create(self.model), **obj_in}
        db_obj = self.model(**payload)
        db.add(db_obj)
        if auto_commit:
            db.commit()
            db.refresh(db_obj)
        return db_obj

    def _build(self, query: QueryWrapper, scoped: bool):
        if not scoped:
            return self.dialect.build_select(query)
        with data_scope(self.model):
            return self.dialect.build_select(query)
