"""数据权限全局中间件。

说明：
- 每个请求开始时重置数据权限上下文，避免上一个请求的状态残留；
- 根据路由前缀计算本次请求是否启用数据隔离；
- 若配置了 ``profile_loader``，用请求头换取已登录用户的画像并写入上下文；
  未登录或加载失败时保持匿名，鉴权本身由业务依赖完成。
"""

from __future__ import annotations

from typing import Callable, Mapping, Optional

from starlette.types import ASGIApp, Receive, Scope, Send

from scopeguard.core.config import get_settings
from scopeguard.core.datascope import reset_context, set_current_user, set_isolation_enabled
from scopeguard.core.logger import logger
from scopeguard.schemas.profile import UserProfile

ProfileLoader = Callable[[Mapping[str, str]], Optional[UserProfile]]


def should_enable_isolation(path: str) -> bool:
    """根据配置与路由前缀判断当前请求是否启用数据隔离。

    规则：
    - 默认取 settings.data_scope_enabled；
    - 若命中 bypass 前缀，则禁用；
    - 若命中 enforce 前缀，则启用（优先生效）。
    """
    settings = get_settings()
    p = path or ""
    for prefix in settings.data_scope_enforce_prefixes:
        if p.startswith(prefix):
            return True
    for prefix in settings.data_scope_bypass_prefixes:
        if p.startswith(prefix):
            return False
    return settings.data_scope_enabled


class DataScopeMiddleware:
    def __init__(self, app: ASGIApp, profile_loader: Optional[ProfileLoader] = None) -> None:
        self.app = app
        self.profile_loader = profile_loader

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        reset_context()
        set_isolation_enabled(should_enable_isolation(str(scope.get("path") or "")))

        if self.profile_loader is not None:
            headers = {k.decode("latin-1").lower(): v.decode("latin-1") for k, v in scope.get("headers", [])}
            try:
                set_current_user(self.profile_loader(headers))
            except Exception:
                # 用户画像加载失败按匿名处理，不影响主流程
                logger.warning("Failed to load user profile for data scope", exc_info=True)

        await self.app(scope, receive, send)
