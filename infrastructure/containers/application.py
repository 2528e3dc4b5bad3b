"""
应用容器（AppContainer）

管理应用层组件：同步服务、记录构建、查询处理器。
依赖 InfraContainer 获取基础设施。
"""

from dependency_injector import containers, providers

from application.handlers.verification import (
    GetRecipientCodesHandler,
    ListRecentCodesHandler,
)
from application.mail.services import AsyncMailSyncService
from application.verification.services import CodeRecordBuilder


class AppContainer(containers.DeclarativeContainer):
    """应用容器 - 管理应用层服务"""

    # 依赖配置容器
    config = providers.DependenciesContainer()

    # 依赖基础设施容器
    infra = providers.DependenciesContainer()

    # ============ 应用服务 ============

    code_record_builder = providers.Singleton(CodeRecordBuilder)

    # 邮箱同步服务（单例，整个应用只需一个实例）
    # 注意: code_repository 使用 .provider 传递工厂，每个周期使用独立 Session
    mail_sync_service = providers.Singleton(
        AsyncMailSyncService,
        mailbox_client=infra.mailbox_client,
        record_builder=code_record_builder,
        code_repository=infra.code_record_repository.provider,
        interval=config.settings.provided.sync_interval,
        lookback_minutes=config.settings.provided.lookback_minutes,
        stuck_threshold=config.settings.provided.sync_stuck_threshold,
        dedup_chunk_size=config.settings.provided.dedup_chunk_size,
        max_concurrent_fetches=config.settings.provided.sync_max_concurrent_fetches,
    )

    # ============ 查询处理器 ============

    list_recent_codes_handler = providers.Factory(
        ListRecentCodesHandler,
        repository=infra.code_record_repository,
        lookback_minutes=config.settings.provided.lookback_minutes,
        page_size=config.settings.provided.admin_page_size,
    )

    get_recipient_codes_handler = providers.Factory(
        GetRecipientCodesHandler,
        repository=infra.code_record_repository,
        lookback_minutes=config.settings.provided.lookback_minutes,
        page_size=config.settings.provided.recipient_page_size,
        allowed_domains=config.settings.provided.allowed_domain_list,
        lock_passwords=config.settings.provided.lock_password_list,
    )
