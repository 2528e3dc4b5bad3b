"""API 测试夹具"""

from unittest.mock import Mock

import pytest
from dependency_injector import providers
from fastapi.testclient import TestClient

from domain.mail.services.mailbox_client import ConnectionStatus, MailboxClient
from domain.mail.value_objects.message_query import MessagePage
from infrastructure.config.settings import Settings
from infrastructure.containers import bootstrap
from interfaces.api import create_app

ADMIN_PASSWORD = "admin-pw"
UNLOCK_PASSWORD = "unlock-pw"


@pytest.fixture
def settings():
    """测试配置：内存数据库，不自动启动同步"""
    return Settings(
        _env_file=None,
        app_env="test",
        log_file="",
        sync_autostart=False,
        sync_interval=60.0,
        admin_passwords=ADMIN_PASSWORD,
        admin_session_secret="test-secret",
        allowed_domains="example.com",
        lock_passwords=UNLOCK_PASSWORD,
        authorized_inbox="inbox@example.com",
    )


@pytest.fixture
def mailbox_client():
    """模拟邮箱客户端"""
    client = Mock(spec=MailboxClient)
    client.list_message_ids.return_value = MessagePage()
    client.check_connection.return_value = ConnectionStatus(
        authenticated=True, message="Gmail connected. Ready to search.", account="inbox@example.com"
    )
    return client


@pytest.fixture
def boot(settings, mailbox_client):
    boot = bootstrap(settings)
    boot.infra.mailbox_client.override(providers.Object(mailbox_client))
    return boot


@pytest.fixture
def app(settings, boot):
    return create_app(settings, boot)


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def admin_client(client):
    """已登录的管理员客户端"""
    response = client.post("/api/admin/login", json={"password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return client
