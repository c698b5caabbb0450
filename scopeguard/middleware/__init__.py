from scopeguard.middleware.datascope import DataScopeMiddleware, should_enable_isolation
from scopeguard.middleware.request_id import RequestIdMiddleware

__all__ = ["DataScopeMiddleware", "RequestIdMiddleware", "should_enable_isolation"]
