"""请求日志中间件"""

import logging
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp


def client_ip(request: Request) -> str:
    """客户端 IP：优先 X-Forwarded-For 的第一个地址"""
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client is not None:
        return request.client.host
    return "unknown"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    记录每个 HTTP 请求（方法、路径、客户端 IP、User-Agent）

    查询参数不记录，避免把解锁密码写进日志。
    """

    def __init__(self, app: ASGIApp, logger: Optional[logging.Logger] = None):
        super().__init__(app)
        self._logger = logger or logging.getLogger("interfaces.api.http")

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        user_agent = request.headers.get("user-agent", "-")
        self._logger.info(
            f"[HTTP] {request.method} {request.url.path} "
            f"ip={client_ip(request)} ua={user_agent}"
        )
        response = await call_next(request)
        self._logger.debug(
            f"[HTTP] {request.method} {request.url.path} -> {response.status_code}"
        )
        return response
