"""数据库初始化：建表并写入数据权限依赖的基础用户数据。"""

from typing import Iterable, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from scopeguard.core.config import get_settings
from scopeguard.core.logger import logger
from scopeguard.db import session as db_session
from scopeguard.models.base import Base
from scopeguard.models.user import SysUser, SysUserDept


def init_db(engine: Optional[Engine] = None) -> None:
    """创建全部已注册模型对应的表。"""
    Base.metadata.create_all(bind=engine or db_session.engine)


def ensure_admin_user(db: Session, *, user_id: int = 1, username: str = "admin") -> SysUser:
    """确保存在一个带管理员标记的用户，部门范围谓词会放行其创建的数据。"""
    user = db.get(SysUser, user_id)
    if user is None:
        user = SysUser(id=user_id, username=username, user_tag_cd=get_settings().data_scope_admin_user_tag)
        db.add(user)
        db.commit()
        logger.info("Created admin user %s (id=%s)", username, user_id)
    return user


def assign_user_depts(db: Session, user_id: int, dept_ids: Iterable[int]) -> None:
    """覆盖写入用户所属部门。"""
    db.query(SysUserDept).filter(SysUserDept.user_id == user_id).delete()
    for dept_id in sorted(set(dept_ids)):
        db.add(SysUserDept(user_id=user_id, dept_id=dept_id))
    db.commit()
