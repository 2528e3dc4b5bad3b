"""Settings 单元测试"""

from infrastructure.config.settings import Settings, parse_list


def make_settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestParseList:
    """逗号列表解析"""

    def test_trims_and_drops_empty(self):
        """测试去除空白和空项"""
        assert parse_list(" a, ,b ,,") == ["a", "b"]

    def test_lowercase(self):
        """测试小写"""
        assert parse_list("Example.COM", lowercase=True) == ["example.com"]

    def test_empty(self):
        """测试空值"""
        assert parse_list("") == []


class TestSettings:
    """配置属性"""

    def test_defaults(self):
        """测试默认值"""
        settings = make_settings()

        assert settings.lookback_minutes == 8
        assert settings.sync_interval == 10.0
        assert settings.sync_stuck_threshold == 120.0
        assert settings.dedup_chunk_size == 100
        assert settings.mailbox_backend == "gmail"
        assert settings.admin_session_hours == 24.0

    def test_database_url_by_env(self):
        """测试按环境选择数据库 URL"""
        assert make_settings(app_env="test").database_url == "sqlite:///:memory:"
        assert make_settings(app_env="dev", dev_db_path="x/dev.db").database_url == "sqlite:///x/dev.db"
        assert make_settings(app_env="prod", prod_database_url="postgresql://db").database_url == "postgresql://db"

    def test_imap_mailbox_defaults(self):
        """测试 IMAP 文件夹默认值"""
        assert make_settings(imap_host="imap.gmail.com").resolved_imap_mailbox == "[Gmail]/All Mail"
        assert make_settings(imap_host="imap.example.com").resolved_imap_mailbox == "INBOX"
        assert make_settings(imap_mailbox="Codes").resolved_imap_mailbox == "Codes"

    def test_lists(self):
        """测试列表配置"""
        settings = make_settings(
            allowed_domains="Example.com, foo.org",
            admin_passwords="a, b",
            lock_passwords="",
            authorized_inbox=" Me@Example.com ",
        )

        assert settings.allowed_domain_list == ["example.com", "foo.org"]
        assert settings.admin_password_list == ["a", "b"]
        assert settings.lock_password_list == []
        assert settings.authorized_inbox_normalized == "me@example.com"

    def test_env_vars(self, monkeypatch):
        """测试从环境变量读取"""
        monkeypatch.setenv("LOOKBACK_MINUTES", "15")
        monkeypatch.setenv("MAILBOX_BACKEND", "imap")

        settings = make_settings()

        assert settings.lookback_minutes == 15
        assert settings.mailbox_backend == "imap"
