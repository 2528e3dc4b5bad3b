"""
FastAPI 应用工厂

创建应用、连接 DI 容器与路由，并在生命周期内启动/停止后台同步。
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from infrastructure.config.settings import Settings, get_settings
from infrastructure.containers import Bootstrap, bootstrap
from interfaces.api.middleware import RequestLoggingMiddleware
from interfaces.api.routes import admin_router, codes_router, status_router
from interfaces.api.routes.admin import (
    set_list_recent_codes_handler_getter,
    set_session_manager_getter,
    set_sync_service_getter,
)
from interfaces.api.routes.codes import set_get_recipient_codes_handler_getter
from interfaces.api.routes.status import set_mailbox_client_getter

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    boot: Optional[Bootstrap] = None,
) -> FastAPI:
    """
    创建 FastAPI 应用

    Args:
        settings: 应用配置，默认使用全局配置
        boot: 已连接的容器，默认按 settings 创建

    Returns:
        FastAPI 应用
    """
    settings = settings or get_settings()
    boot = boot or bootstrap(settings)
    container = boot.app

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        sync_service = container.mail_sync_service()
        if settings.sync_autostart:
            await sync_service.start()
        else:
            logger.info("Sync loop autostart disabled")
        try:
            yield
        finally:
            await sync_service.stop()

    app = FastAPI(
        title=settings.app_name,
        description="验证码收件箱 - 轮询邮箱、提取验证码、去重存储",
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.bootstrap = boot

    app.add_middleware(RequestLoggingMiddleware)

    # 注册 Handler Getters（连接 DI 容器到路由）
    set_list_recent_codes_handler_getter(container.list_recent_codes_handler)
    set_get_recipient_codes_handler_getter(container.get_recipient_codes_handler)
    set_sync_service_getter(container.mail_sync_service)
    set_session_manager_getter(boot.infra.admin_session_manager)
    set_mailbox_client_getter(
        boot.infra.mailbox_client,
        authorized_inbox=settings.authorized_inbox_normalized,
    )

    app.include_router(admin_router, prefix="/api")
    app.include_router(codes_router, prefix="/api")
    app.include_router(status_router, prefix="/api")

    @app.get("/health", tags=["Status"])
    async def health():
        """健康检查"""
        return {"status": "healthy"}

    return app
