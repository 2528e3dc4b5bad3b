"""
REST API 路由

定义 REST API 端点。
"""

from interfaces.api.routes.admin import router as admin_router
from interfaces.api.routes.codes import router as codes_router
from interfaces.api.routes.status import router as status_router

__all__ = ["admin_router", "codes_router", "status_router"]
