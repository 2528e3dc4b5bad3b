"""管理员会话认证"""

from infrastructure.auth.admin_session import (
    SESSION_COOKIE_NAME,
    AdminSessionManager,
    SessionConfigurationError,
    hash_password_list,
)

__all__ = [
    "SESSION_COOKIE_NAME",
    "AdminSessionManager",
    "SessionConfigurationError",
    "hash_password_list",
]
