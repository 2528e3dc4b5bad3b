"""
基础设施容器（InfraContainer）

管理所有基础设施组件：数据库、仓储实现、邮箱后端、会话管理等。
依赖 ConfigContainer 获取配置。
"""

from dependency_injector import containers, providers
from sqlalchemy import Engine
from sqlalchemy.orm import sessionmaker

from infrastructure.auth.admin_session import AdminSessionManager
from infrastructure.database.database_factory import DatabaseFactory
from infrastructure.mail.services.gmail_mailbox_client import GmailMailboxClient
from infrastructure.mail.services.imap_mailbox_client import ImapMailboxClient
from infrastructure.verification.repositories.sqlalchemy_code_record_repository import (
    SqlAlchemyCodeRecordRepository,
)


class InfraContainer(containers.DeclarativeContainer):
    """基础设施容器 - 管理技术实现"""

    # 依赖配置容器
    config = providers.DependenciesContainer()

    # ============ 数据库 ============

    # 数据库引擎（单例）
    db_engine: providers.Singleton[Engine] = providers.Singleton(
        DatabaseFactory.create_engine,
        settings=config.settings,
    )

    # Session 工厂（单例）
    db_session_factory: providers.Singleton[sessionmaker] = providers.Singleton(
        DatabaseFactory.create_session_factory,
        engine=db_engine,
    )

    # 数据库 Session（每次请求新实例）
    db_session = providers.Factory(
        lambda session_factory: session_factory(),
        session_factory=db_session_factory,
    )

    # ============ 仓储 ============

    # 验证码记录仓储（每次新建，第一次查询时才打开独立 Session）
    code_record_repository = providers.Factory(
        SqlAlchemyCodeRecordRepository,
        session=db_session.provider,
    )

    # ============ 邮箱后端 ============

    gmail_mailbox_client = providers.Singleton(
        GmailMailboxClient,
        client_id=config.settings.provided.google_client_id,
        client_secret=config.settings.provided.google_client_secret,
        refresh_token=config.settings.provided.google_refresh_token,
    )

    imap_mailbox_client = providers.Singleton(
        ImapMailboxClient,
        host=config.settings.provided.imap_host,
        port=config.settings.provided.imap_port,
        username=config.settings.provided.imap_user,
        password=config.settings.provided.imap_password,
        mailbox=config.settings.provided.resolved_imap_mailbox,
        timeout=config.settings.provided.imap_timeout,
    )

    # 按 mailbox_backend 选择后端
    mailbox_client = providers.Selector(
        config.settings.provided.mailbox_backend,
        gmail=gmail_mailbox_client,
        imap=imap_mailbox_client,
    )

    # ============ 认证 ============

    admin_session_manager = providers.Singleton(
        AdminSessionManager,
        passwords=config.settings.provided.admin_password_list,
        secret=config.settings.provided.admin_session_secret,
        session_hours=config.settings.provided.admin_session_hours,
    )
