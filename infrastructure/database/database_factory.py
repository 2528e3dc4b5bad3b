"""
数据库工厂

根据配置创建 SQLAlchemy Engine 和 Session 工厂。
"""

from typing import Optional

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from infrastructure.config.settings import Settings, get_settings


class DatabaseFactory:
    """数据库工厂"""

    @staticmethod
    def create_engine(settings: Optional[Settings] = None) -> Engine:
        """
        创建数据库引擎并确保表结构存在

        - test: 内存 SQLite（StaticPool，所有线程共享同一连接）
        - dev: 文件 SQLite
        - staging/prod: 配置的数据库 URL，带连接池参数

        Args:
            settings: 应用配置，默认使用全局配置

        Returns:
            SQLAlchemy Engine
        """
        settings = settings or get_settings()
        url = settings.database_url

        if url.startswith("sqlite"):
            kwargs = {"connect_args": {"check_same_thread": False}}
            if ":memory:" in url:
                kwargs["poolclass"] = StaticPool
            else:
                DatabaseFactory._ensure_sqlite_dir(url)
            engine = create_engine(url, echo=settings.debug, **kwargs)
        else:
            pool_size = settings.prod_db_pool_size if settings.is_prod else settings.staging_db_pool_size
            max_overflow = settings.prod_db_max_overflow if settings.is_prod else settings.staging_db_max_overflow
            engine = create_engine(
                url,
                echo=settings.debug,
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_pre_ping=True,
            )

        DatabaseFactory.init_schema(engine)
        return engine

    @staticmethod
    def create_session_factory(engine: Engine) -> sessionmaker:
        """创建 Session 工厂"""
        return sessionmaker(bind=engine, expire_on_commit=False)

    @staticmethod
    def init_schema(engine: Engine) -> None:
        """创建所有表（已存在则跳过）"""
        from infrastructure.verification.models.code_record_model import Base

        Base.metadata.create_all(engine)

    @staticmethod
    def _ensure_sqlite_dir(url: str) -> None:
        from pathlib import Path

        path = url.split("///", 1)[-1]
        if path:
            Path(path).parent.mkdir(parents=True, exist_ok=True)

