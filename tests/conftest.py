"""测试夹具：为 pytest 提供内存数据库、会话与数据权限上下文的共享配置。"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from typing import Generator

import pytest
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from scopeguard.core.config import Settings
from scopeguard.core.datascope import reset_context
from scopeguard.db import session as db_session
from scopeguard.db.init_db import assign_user_depts, ensure_admin_user, init_db
from scopeguard.query.dialect import set_dialect
from scopeguard.schemas.profile import UserProfile

from entities import Notice


@pytest.fixture(scope="session", autouse=True)
def setup_test_database() -> Generator[None, None, None]:
    """创建隔离的 SQLite 内存库，并替换模块级的引擎与会话工厂。"""
    engine = db_session.build_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    db_session.engine = engine
    db_session.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    init_db(engine)
    yield
    engine.dispose()


@pytest.fixture(autouse=True)
def clean_context() -> Generator[None, None, None]:
    """每个用例前后清空请求级上下文与进程级方言。"""
    reset_context()
    set_dialect(None)
    yield
    reset_context()
    set_dialect(None)


@pytest.fixture()
def db_session_fixture() -> Generator[Session, None, None]:
    session = db_session.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def seeded_notices(db_session_fixture: Session) -> Generator[Session, None, None]:
    """写入用户、部门归属与一组公告数据，用例结束后清理。

    用户 1 为管理员；用户 7、8 属于部门 10；用户 9 属于部门 20；用户 5 属于部门 30。
    """
    db = db_session_fixture
    ensure_admin_user(db)
    assign_user_depts(db, 7, [10])
    assign_user_depts(db, 8, [10])
    assign_user_depts(db, 9, [20])
    assign_user_depts(db, 5, [30])
    db.add_all(
        [
            Notice(id=1, title="admin notice", create_id=1, dept_scope=[99]),
            Notice(id=2, title="from 7", create_id=7, dept_scope=[10]),
            Notice(id=3, title="from 8", create_id=8, dept_scope=[10]),
            Notice(id=4, title="from 9", create_id=9, dept_scope=[20]),
            Notice(id=5, title="from 5", create_id=5, dept_scope=[30]),
            Notice(id=6, title="deleted", create_id=5, dept_scope=[30], del_flag="T"),
        ]
    )
    db.commit()
    yield db
    db.query(Notice).delete()
    db.commit()


@pytest.fixture()
def user_settings() -> Settings:
    return Settings(DATABASE_URL="sqlite://", DATA_SCOPE_LOGIC_MIN_UNIT="user")


@pytest.fixture()
def department_settings() -> Settings:
    return Settings(DATABASE_URL="sqlite://", DATA_SCOPE_LOGIC_MIN_UNIT="department")


def make_profile(**overrides) -> UserProfile:
    """构建一个普通用户画像：权限 P1/P2 分别映射到菜单 M1/M2。"""
    payload = {
        "user_id": 5,
        "roles": {"user"},
        "permissions": {"P1", "P2"},
        "depts": {30},
        "dept_and_children": {30, 31},
        "permission_menu_map": {"P1": "M1", "P2": "M2"},
        "rule_map": {},
    }
    payload.update(overrides)
    return UserProfile(**payload)


@pytest.fixture()
def profile_factory():
    return make_profile
