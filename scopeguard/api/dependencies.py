"""依赖注入模块：把数据权限的请求级上下文接入 FastAPI 路由。

示例::

    @router.get(
        "/notices",
        dependencies=[
            Depends(require_permissions("notice.list", "notice.query", mode="or")),
            Depends(with_data_scope(Notice)),
        ],
    )
    def list_notices(db: Session = Depends(get_db)): ...

依赖均为 ``async`` 函数，保证写入的上下文变量对同一请求内的端点可见；
请求结束后的清理由 ``DataScopeMiddleware`` 在下一个请求开始时统一完成。
"""

from collections.abc import Generator
from typing import Awaitable, Callable

from fastapi import status
from sqlalchemy.orm import Session

from scopeguard.core.datascope import get_current_user, set_control, start_data_scope
from scopeguard.core.enums import CombineMode
from scopeguard.core.exceptions import AppException
from scopeguard.db import session as db_session
from scopeguard.schemas.profile import UserProfile


def get_db() -> Generator[Session, None, None]:
    """生成一个数据库会话，并在请求结束后自动关闭。"""
    db = db_session.SessionLocal()
    try:
        yield db
    finally:
        db.close()


async def get_current_profile() -> UserProfile:
    """返回当前登录用户画像，未登录时抛出 401。"""
    user = get_current_user()
    if user is None:
        raise AppException("缺少认证信息", status.HTTP_401_UNAUTHORIZED)
    return user


def require_permissions(*permissions: str, mode: CombineMode | str = CombineMode.NONE) -> Callable[[], Awaitable[None]]:
    """声明当前操作涉及的按钮权限与组合模式，供数据权限解析使用。

    这里只记录上下文，不做“能否访问”的校验。
    """
    combine = CombineMode(mode or "")

    async def _dependency() -> None:
        set_control(permissions, combine)

    return _dependency


def with_data_scope(entity: type) -> Callable[[], Awaitable[None]]:
    """为当前请求内的查询开启数据权限，并指定目标实体。"""

    async def _dependency() -> None:
        start_data_scope(entity)

    return _dependency
