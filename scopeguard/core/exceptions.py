"""异常处理模块：定义数据权限相关异常与统一的 HTTP 响应格式。"""

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

from scopeguard.core.responses import create_response


class DataScopeError(Exception):
    """数据权限引擎内部异常的基类，由钩子统一捕获并降级。"""


class EntityMetadataError(DataScopeError):
    """无法从目标实体解析出表名或字段信息。"""

    def __init__(self, entity: object, reason: str) -> None:
        name = getattr(entity, "__name__", repr(entity))
        super().__init__(f"Entity `{name}`: {reason}")
        self.entity = entity


class AppException(HTTPException):
    """携带统一响应结构的业务异常，方便在全局处理中转换响应体。"""

    def __init__(self, msg: str, code: int = status.HTTP_400_BAD_REQUEST, data=None) -> None:
        super().__init__(status_code=code, detail=msg)
        self.data = data


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:  # pragma: no cover - framework glue
    """将 FastAPI 的 ``HTTPException`` 转换为统一响应格式。"""
    payload = create_response(exc.detail, getattr(exc, "data", None), exc.status_code)
    return JSONResponse(status_code=exc.status_code, content=payload)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # pragma: no cover - framework glue
    """兜底处理：将未捕获异常转换为标准的 500 响应结构。"""
    payload = create_response("服务器内部错误", None, status.HTTP_500_INTERNAL_SERVER_ERROR)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=payload)
