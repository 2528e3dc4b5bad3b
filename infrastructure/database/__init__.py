"""
数据库基础设施模块

Engine 与 Session 工厂，由 InfraContainer 管理生命周期。
"""

from .database_factory import DatabaseFactory

__all__ = ["DatabaseFactory"]
