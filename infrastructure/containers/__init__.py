"""
依赖注入容器

三层容器：ConfigContainer -> InfraContainer -> AppContainer。

用法：
    from infrastructure.containers import bootstrap

    boot = bootstrap()
    service = boot.app.mail_sync_service()
"""

from dataclasses import dataclass
from typing import Optional

from dependency_injector import providers

from infrastructure.config.settings import Settings
from .application import AppContainer
from .config import ConfigContainer
from .infrastructure import InfraContainer


@dataclass
class Bootstrap:
    """已连接的容器集合"""

    config: ConfigContainer
    infra: InfraContainer
    app: AppContainer


def bootstrap(settings: Optional[Settings] = None) -> Bootstrap:
    """
    创建并连接容器

    Args:
        settings: 覆盖全局配置（测试时使用）
    """
    config = ConfigContainer()
    if settings is not None:
        config.settings.override(providers.Object(settings))

    infra = InfraContainer(config=config)
    app = AppContainer(config=config, infra=infra)
    return Bootstrap(config=config, infra=infra, app=app)


__all__ = [
    "AppContainer",
    "Bootstrap",
    "ConfigContainer",
    "InfraContainer",
    "bootstrap",
]
