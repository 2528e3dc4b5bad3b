"""邮箱连接状态 API 路由"""

import logging
from typing import Callable, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool

from domain.mail.services.mailbox_client import MailboxClient

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Status"])


# ============ 依赖注入 ============

_mailbox_client_getter: Optional[Callable[[], MailboxClient]] = None
_authorized_inbox: str = ""


def set_mailbox_client_getter(
    getter: Callable[[], MailboxClient], authorized_inbox: str = ""
) -> None:
    """设置邮箱客户端获取器和授权邮箱（由 DI 容器调用）"""
    global _mailbox_client_getter, _authorized_inbox
    _mailbox_client_getter = getter
    _authorized_inbox = authorized_inbox.strip().lower()


def get_mailbox_client() -> Optional[MailboxClient]:
    if _mailbox_client_getter is None:
        return None
    return _mailbox_client_getter()


class AuthStatusResponseDTO(BaseModel):
    """邮箱连接状态"""

    authenticated: bool = Field(..., description="是否连接成功")
    message: str = Field(..., description="说明")


@router.get(
    "/auth/status",
    response_model=AuthStatusResponseDTO,
    summary="检查邮箱连接",
)
async def auth_status(client: Optional[MailboxClient] = Depends(get_mailbox_client)):
    """检查邮箱后端凭据，并校验账号是否为授权邮箱"""
    if client is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Mailbox client not configured. Please configure dependency injection.",
        )

    result = await run_in_threadpool(client.check_connection)

    if not result.authenticated:
        return AuthStatusResponseDTO(authenticated=False, message=result.message)

    if _authorized_inbox and result.account != _authorized_inbox:
        logger.warning(f"Mailbox account {result.account} is not the authorized inbox")
        return AuthStatusResponseDTO(
            authenticated=False,
            message="Mailbox account must match the authorized inbox.",
        )

    return AuthStatusResponseDTO(authenticated=True, message=result.message)
