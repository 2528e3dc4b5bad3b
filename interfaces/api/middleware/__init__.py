"""HTTP 中间件"""

from interfaces.api.middleware.request_logging_middleware import RequestLoggingMiddleware

__all__ = ["RequestLoggingMiddleware"]
