"""
应用配置管理

使用 pydantic-settings 管理环境变量和配置
"""

from typing import List, Literal
from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_list(value: str, lowercase: bool = False) -> List[str]:
    """解析逗号分隔的列表，去除空白和空项"""
    items = [item.strip() for item in (value or "").split(",")]
    if lowercase:
        items = [item.lower() for item in items]
    return [item for item in items if item]


class Settings(BaseSettings):
    """
    应用配置类

    自动从环境变量和 .env 文件读取配置
    """

    # ========== 应用环境 ==========
    app_env: Literal["test", "dev", "staging", "prod"] = "dev"
    app_name: str = "CodeInbox"
    app_version: str = "1.0.0"
    debug: bool = False

    # ========== 数据库配置 ==========
    # 开发环境（SQLite）
    dev_db_path: str = "data/dev.db"

    # Staging 环境
    staging_database_url: str = ""
    staging_db_pool_size: int = 10
    staging_db_max_overflow: int = 20

    # 生产环境
    prod_database_url: str = ""
    prod_db_pool_size: int = 20
    prod_db_max_overflow: int = 40

    # ========== 日志配置 ==========
    log_level: str = "INFO"
    log_file: str = "logs/app.log"

    # ========== 同步配置 ==========
    lookback_minutes: int = 8
    sync_interval: float = 10.0
    sync_stuck_threshold: float = 120.0
    sync_max_concurrent_fetches: int = 4
    sync_autostart: bool = True
    dedup_chunk_size: int = 100

    # ========== 读取配置 ==========
    admin_page_size: int = 100
    recipient_page_size: int = 100

    # ========== 邮箱后端 ==========
    mailbox_backend: Literal["gmail", "imap"] = "gmail"

    # Gmail API（OAuth2 refresh token）
    google_client_id: str = ""
    google_client_secret: str = ""
    google_refresh_token: str = ""

    # IMAP
    imap_host: str = "imap.gmail.com"
    imap_port: int = 993
    imap_user: str = ""
    imap_password: str = ""
    imap_mailbox: str = ""
    imap_timeout: float = 30.0

    # ========== 访问控制 ==========
    authorized_inbox: str = ""
    allowed_domains: str = ""
    admin_passwords: str = ""
    admin_session_secret: str = ""
    admin_session_hours: float = 24.0
    lock_passwords: str = ""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # 忽略未定义的环境变量
    )

    @property
    def is_test(self) -> bool:
        """是否为测试环境"""
        return self.app_env == "test"

    @property
    def is_dev(self) -> bool:
        """是否为开发环境"""
        return self.app_env == "dev"

    @property
    def is_staging(self) -> bool:
        """是否为 staging 环境"""
        return self.app_env == "staging"

    @property
    def is_prod(self) -> bool:
        """是否为生产环境"""
        return self.app_env == "prod"

    @property
    def database_url(self) -> str:
        """获取当前环境的数据库 URL"""
        if self.is_test:
            return "sqlite:///:memory:"
        elif self.is_dev:
            return f"sqlite:///{self.dev_db_path}"
        elif self.is_staging:
            return self.staging_database_url
        else:  # prod
            return self.prod_database_url

    @property
    def resolved_imap_mailbox(self) -> str:
        """IMAP 文件夹：未配置时 Gmail 使用 "[Gmail]/All Mail"，其他使用 INBOX"""
        if self.imap_mailbox:
            return self.imap_mailbox
        if "gmail.com" in self.imap_host.lower():
            return "[Gmail]/All Mail"
        return "INBOX"

    @property
    def authorized_inbox_normalized(self) -> str:
        return self.authorized_inbox.strip().lower()

    @property
    def allowed_domain_list(self) -> List[str]:
        return parse_list(self.allowed_domains, lowercase=True)

    @property
    def admin_password_list(self) -> List[str]:
        return parse_list(self.admin_passwords)

    @property
    def lock_password_list(self) -> List[str]:
        return parse_list(self.lock_passwords)


# 全局配置实例（单例）
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    获取配置实例（单例模式）

    Returns:
        Settings 实例
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
