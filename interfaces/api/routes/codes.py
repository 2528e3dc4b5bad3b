"""收件人验证码查询 API 路由"""

from typing import Callable, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from application.handlers.verification import (
    GetRecipientCodesHandler,
    ReadStatus,
    RecipientCodesResult,
)
from application.queries.verification import GetRecipientCodesQuery


router = APIRouter(tags=["Codes"])


# ============ Handler 依赖注入 ============

_get_recipient_codes_handler_getter: Optional[Callable[[], GetRecipientCodesHandler]] = None


def set_get_recipient_codes_handler_getter(
    getter: Callable[[], GetRecipientCodesHandler],
) -> None:
    """设置 get_recipient_codes handler 获取器（由 DI 容器调用）"""
    global _get_recipient_codes_handler_getter
    _get_recipient_codes_handler_getter = getter


def get_recipient_codes_handler() -> Optional[GetRecipientCodesHandler]:
    """获取 GetRecipientCodesHandler 实例"""
    if _get_recipient_codes_handler_getter is None:
        return None
    return _get_recipient_codes_handler_getter()


# ============ Response DTOs ============


class RecipientCodesResponseDTO(BaseModel):
    """收件人验证码响应 DTO（状态码 200）

    Attributes:
        email: 规范化后的收件人地址
        items: 未受保护的验证码
        lockedItems: 受保护的验证码（仅在解锁时返回）
        lockedCount: 受保护验证码数量（总是返回）
        unlocked: 解锁密码是否正确
        checkedAt: 查询时间（ISO 格式）
    """

    email: str = Field(..., description="收件人地址")
    items: list = Field(default_factory=list, description="验证码条目")
    lockedItems: list = Field(default_factory=list, description="受保护的验证码条目")
    lockedCount: int = Field(0, description="受保护的验证码数量")
    unlocked: bool = Field(False, description="是否已解锁")
    checkedAt: str = Field(..., description="查询时间 (ISO 格式)")


class ErrorResponseDTO(BaseModel):
    """错误响应 DTO"""

    error: str = Field(..., description="错误信息")
    checkedAt: Optional[str] = Field(None, description="查询时间 (ISO 格式)")


_ERROR_STATUS = {
    ReadStatus.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ReadStatus.INVALID_EMAIL: status.HTTP_400_BAD_REQUEST,
    ReadStatus.FORBIDDEN_DOMAIN: status.HTTP_403_FORBIDDEN,
    ReadStatus.UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


# ============ API Endpoints ============


@router.get(
    "/codes",
    responses={
        200: {"model": RecipientCodesResponseDTO, "description": "收件人的验证码"},
        400: {"model": ErrorResponseDTO, "description": "邮箱地址无效"},
        401: {"model": ErrorResponseDTO, "description": "解锁密码错误"},
        403: {"model": ErrorResponseDTO, "description": "域名不在允许列表中"},
        503: {"model": ErrorResponseDTO, "description": "存储不可用"},
    },
    summary="按收件人查询验证码",
    description="""
    返回回溯窗口内发给指定收件人的验证码，按接收时间降序。

    受保护的验证码只有在提供正确的解锁密码时才返回，否则只返回数量。

    **状态说明：**
    - **200 OK**: 成功，没有记录时 items 为空列表
    - **400 Bad Request**: 邮箱地址缺失或无效
    - **401 Unauthorized**: 提供了错误的解锁密码
    - **403 Forbidden**: 域名不在允许列表中
    - **503 Service Unavailable**: 存储不可用
    """,
)
def query_codes(
    email: str = Query("", description="收件人邮箱"),
    password: Optional[str] = Query(None, description="解锁密码"),
    handler: Optional[GetRecipientCodesHandler] = Depends(get_recipient_codes_handler),
):
    if handler is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Handler not configured. Please configure dependency injection.",
        )

    query = GetRecipientCodesQuery(email=email, unlock_password=password)
    result: RecipientCodesResult = handler.handle(query)

    if result.status in _ERROR_STATUS:
        return JSONResponse(
            status_code=_ERROR_STATUS[result.status],
            content={
                "error": result.message or "Server unavailable.",
                "checkedAt": result.checked_at.isoformat(),
            },
        )

    return {
        "email": result.email,
        "items": [item.to_dict() for item in result.items],
        "lockedItems": [item.to_dict() for item in result.locked_items],
        "lockedCount": result.locked_count,
        "unlocked": result.unlocked,
        "checkedAt": result.checked_at.isoformat(),
    }
