"""应用工厂：创建挂载了数据权限中间件与统一异常处理的 FastAPI 实例。"""

from typing import Iterable, Optional

from fastapi import APIRouter, FastAPI, HTTPException

from scopeguard.core.config import get_settings
from scopeguard.core.exceptions import generic_exception_handler, http_exception_handler
from scopeguard.core.logger import logger, setup_logging
from scopeguard.core.responses import create_response
from scopeguard.middleware.datascope import DataScopeMiddleware, ProfileLoader
from scopeguard.middleware.request_id import RequestIdMiddleware


def create_app(
    routers: Iterable[APIRouter] = (),
    *,
    profile_loader: Optional[ProfileLoader] = None,
    configure_logging: bool = True,
) -> FastAPI:
    """组装应用。``profile_loader`` 由登录模块提供，用于把请求头换成用户画像。"""
    settings = get_settings()
    if configure_logging:
        setup_logging()

    app = FastAPI(title=settings.project_name, debug=settings.debug)
    # 后注册的中间件先执行：请求 ID 先于数据权限上下文写入
    app.add_middleware(DataScopeMiddleware, profile_loader=profile_loader)
    app.add_middleware(RequestIdMiddleware)

    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    @app.get("/health")
    async def health_check() -> dict:
        """提供健康检查接口，便于编排器与监控系统探活。"""
        return create_response("OK", {"status": "healthy"})

    for router in routers:
        app.include_router(router)

    logger.info(
        "Data scope %s (logic min unit: %s)",
        "enabled" if settings.data_scope_enabled else "disabled",
        settings.data_scope_logic_min_unit,
    )
    return app
