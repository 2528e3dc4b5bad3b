"""管理员 API 路由"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from fastapi import APIRouter, Cookie, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool

from application.handlers.verification import ListRecentCodesHandler, ReadStatus
from application.mail.services import MailSyncService
from application.queries.verification import ListRecentCodesQuery
from infrastructure.auth.admin_session import (
    SESSION_COOKIE_NAME,
    AdminSessionManager,
    SessionConfigurationError,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Admin"])


# ============ Handler 依赖注入 ============

_list_recent_codes_handler_getter: Optional[Callable[[], ListRecentCodesHandler]] = None
_session_manager_getter: Optional[Callable[[], AdminSessionManager]] = None
_sync_service_getter: Optional[Callable[[], MailSyncService]] = None


def set_list_recent_codes_handler_getter(getter: Callable[[], ListRecentCodesHandler]) -> None:
    """设置 list_recent_codes handler 获取器（由 DI 容器调用）"""
    global _list_recent_codes_handler_getter
    _list_recent_codes_handler_getter = getter


def set_session_manager_getter(getter: Callable[[], AdminSessionManager]) -> None:
    """设置会话管理器获取器"""
    global _session_manager_getter
    _session_manager_getter = getter


def set_sync_service_getter(getter: Callable[[], MailSyncService]) -> None:
    """设置同步服务获取器"""
    global _sync_service_getter
    _sync_service_getter = getter


def get_list_recent_codes_handler() -> Optional[ListRecentCodesHandler]:
    if _list_recent_codes_handler_getter is None:
        return None
    return _list_recent_codes_handler_getter()


def get_session_manager() -> AdminSessionManager:
    if _session_manager_getter is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Session manager not configured. Please configure dependency injection.",
        )
    return _session_manager_getter()


def get_sync_service() -> Optional[MailSyncService]:
    if _sync_service_getter is None:
        return None
    return _sync_service_getter()


def is_admin(
    session: Optional[str] = Cookie(default=None, alias=SESSION_COOKIE_NAME),
    manager: AdminSessionManager = Depends(get_session_manager),
) -> bool:
    """当前请求是否携带有效的管理员会话"""
    return manager.verify_session(session)


def error_response(
    status_code: int, error: str, checked_at: Optional[datetime] = None
) -> JSONResponse:
    """错误响应；读取接口带上查询时间"""
    content = {"error": error}
    if checked_at is not None:
        content["checkedAt"] = checked_at.isoformat()
    return JSONResponse(status_code=status_code, content=content)


def unauthorized(checked_at: Optional[datetime] = None) -> JSONResponse:
    return error_response(status.HTTP_401_UNAUTHORIZED, "Unauthorized.", checked_at)


def unavailable(checked_at: Optional[datetime] = None) -> JSONResponse:
    return error_response(status.HTTP_503_SERVICE_UNAVAILABLE, "Server unavailable.", checked_at)


# ============ Request/Response DTOs ============


class LoginRequestDTO(BaseModel):
    """管理员登录请求"""

    password: str = Field(default="", description="管理员密码")


class CodeItemDTO(BaseModel):
    """验证码条目"""

    code: str
    from_: Optional[str] = Field(None, alias="from")
    to: str
    timestamp: int
    time: str
    isProtected: bool


class AdminCodesResponseDTO(BaseModel):
    """管理员验证码列表响应"""

    items: list[CodeItemDTO]
    checkedAt: str


class ErrorResponseDTO(BaseModel):
    """错误响应"""

    error: str
    checkedAt: Optional[str] = None


# ============ API Endpoints ============


@router.post(
    "/admin/login",
    responses={
        401: {"model": ErrorResponseDTO, "description": "密码错误"},
        500: {"model": ErrorResponseDTO, "description": "会话密钥未配置"},
    },
    summary="管理员登录",
)
def login(
    body: LoginRequestDTO,
    request: Request,
    manager: AdminSessionManager = Depends(get_session_manager),
):
    """校验密码并设置 admin_session Cookie"""
    if not manager.is_password_valid(body.password.strip()):
        logger.warning("Admin login rejected")
        return unauthorized()

    try:
        token = manager.create_session()
    except SessionConfigurationError as e:
        logger.error(f"Admin session error: {e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Session error."},
        )

    response = JSONResponse(content={"ok": True})
    response.set_cookie(
        SESSION_COOKIE_NAME,
        token,
        max_age=manager.max_age,
        path="/",
        httponly=True,
        samesite="lax",
        secure=request.url.scheme == "https",
    )
    return response


@router.post("/admin/logout", summary="管理员登出")
def logout():
    """清除 admin_session Cookie"""
    response = JSONResponse(content={"ok": True})
    response.delete_cookie(SESSION_COOKIE_NAME, path="/")
    return response


@router.get(
    "/admin/codes",
    responses={
        200: {"model": AdminCodesResponseDTO, "description": "回溯窗口内的验证码"},
        401: {"model": ErrorResponseDTO, "description": "未登录或会话过期"},
        503: {"model": ErrorResponseDTO, "description": "存储不可用"},
    },
    summary="查询最近的验证码（管理员）",
    description="""
    返回回溯窗口内所有收件人的验证码，按接收时间降序。

    **状态说明：**
    - **200 OK**: 成功，没有记录时 items 为空列表
    - **401 Unauthorized**: 会话无效
    - **503 Service Unavailable**: 存储不可用
    """,
)
async def list_admin_codes(
    authorized: bool = Depends(is_admin),
    handler: Optional[ListRecentCodesHandler] = Depends(get_list_recent_codes_handler),
    sync_service: Optional[MailSyncService] = Depends(get_sync_service),
):
    if not authorized:
        return unauthorized(datetime.now(timezone.utc))

    if handler is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Handler not configured. Please configure dependency injection.",
        )

    # 确保后台同步已启动（幂等）
    if sync_service is not None:
        await sync_service.start()

    result = await run_in_threadpool(handler.handle, ListRecentCodesQuery(authorized=True))

    if result.status == ReadStatus.UNAUTHORIZED:
        return unauthorized(result.checked_at)
    if result.status == ReadStatus.UNAVAILABLE:
        return unavailable(result.checked_at)

    return {
        "items": [item.to_dict() for item in result.items],
        "checkedAt": result.checked_at.isoformat(),
    }


@router.get(
    "/sync/status",
    responses={401: {"model": ErrorResponseDTO, "description": "未登录或会话过期"}},
    summary="同步状态（管理员）",
)
def sync_status(
    authorized: bool = Depends(is_admin),
    sync_service: Optional[MailSyncService] = Depends(get_sync_service),
):
    if not authorized:
        return unauthorized()

    if sync_service is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Sync service not configured. Please configure dependency injection.",
        )

    snapshot = sync_service.snapshot()

    def iso(value):
        return value.isoformat() if value is not None else None

    return {
        "loopRunning": snapshot.loop_running,
        "inProgress": snapshot.in_progress,
        "startedAt": iso(snapshot.started_at),
        "cursor": iso(snapshot.cursor),
        "lastCompletedAt": iso(snapshot.last_completed_at),
        "interval": sync_service.interval,
        "lookbackMinutes": sync_service.lookback_minutes,
    }
