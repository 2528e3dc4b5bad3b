"""
管理员会话令牌

会话令牌是一个 Fernet 令牌（带签名和时间戳），负载为管理员密码列表的
SHA-256 摘要。更换密码列表会使已有会话失效。
"""

import base64
import hashlib
import hmac
import json
import logging
import time
from typing import Callable, List, Optional, Sequence

from cryptography.fernet import Fernet, InvalidToken

SESSION_COOKIE_NAME = "admin_session"


class SessionConfigurationError(Exception):
    """会话密钥未配置"""


def hash_password_list(passwords: Sequence[str]) -> str:
    """密码列表的 SHA-256 摘要（排序后，与顺序无关）"""
    joined = ",".join(sorted(passwords))
    return hashlib.sha256(joined.encode("utf-8")).hexdigest()


def derive_fernet_key(secret: str) -> bytes:
    """从任意长度的密钥字符串派生 Fernet 密钥"""
    digest = hashlib.sha256(secret.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest)


class AdminSessionManager:
    """
    管理员会话管理器

    Example:
        >>> manager = AdminSessionManager(["pw"], secret="s3cret")
        >>> token = manager.create_session()
        >>> manager.verify_session(token)
        True
    """

    def __init__(
        self,
        passwords: List[str],
        secret: str,
        session_hours: float = 24.0,
        clock: Optional[Callable[[], float]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Args:
            passwords: 允许的管理员密码
            secret: 会话签名密钥（为空时无法创建或验证会话）
            session_hours: 会话有效期（小时）
            clock: 返回 Unix 秒的时钟（测试时注入）
            logger: 可选的日志记录器
        """
        self._passwords = [p for p in passwords if p]
        self._secret = secret
        self._ttl = max(1, int(session_hours * 3600))
        self._clock = clock or time.time
        self._logger = logger or logging.getLogger(__name__)

    @property
    def max_age(self) -> int:
        """会话有效期（秒）"""
        return self._ttl

    def is_password_valid(self, password: Optional[str]) -> bool:
        """校验密码（常量时间比较）"""
        if not password:
            return False
        candidate = password.encode("utf-8")
        return any(
            hmac.compare_digest(candidate, allowed.encode("utf-8"))
            for allowed in self._passwords
        )

    def create_session(self) -> str:
        """
        创建会话令牌

        Raises:
            SessionConfigurationError: 未配置会话密钥
        """
        if not self._secret:
            raise SessionConfigurationError("admin_session_secret is not configured")

        payload = json.dumps({"pw": hash_password_list(self._passwords)})
        token = self._fernet().encrypt_at_time(payload.encode("utf-8"), int(self._clock()))
        return token.decode("ascii")

    def verify_session(self, token: Optional[str]) -> bool:
        """验证会话令牌：密钥已配置、未过期、密码列表未变更"""
        if not token or not self._secret or not self._passwords:
            return False

        try:
            raw = self._fernet().decrypt_at_time(
                token.encode("ascii"), ttl=self._ttl, current_time=int(self._clock())
            )
            payload = json.loads(raw)
        except (InvalidToken, UnicodeError, ValueError):
            self._logger.debug("Rejected admin session token")
            return False

        expected = hash_password_list(self._passwords)
        actual = payload.get("pw") if isinstance(payload, dict) else None
        return isinstance(actual, str) and hmac.compare_digest(actual, expected)

    def _fernet(self) -> Fernet:
        return Fernet(derive_fernet_key(self._secret))
