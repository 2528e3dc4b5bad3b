"""邮箱同步服务接口"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from application.mail.services.sync_cycle_state import SyncStateSnapshot


class SyncStatus(str, Enum):
    """单次同步周期的结果状态"""

    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class SyncResult:
    """
    单次同步周期结果

    Attributes:
        status: 周期状态
        recovered: 是否在强制复位卡死周期后开始
        messages_found: 回溯窗口内的消息数
        messages_failed: 获取或解析失败被跳过的消息数
        candidates: 提取出的候选记录数
        inserted: 实际写入的新记录数
        error: 周期失败时的错误描述
    """

    status: SyncStatus
    recovered: bool = False
    messages_found: int = 0
    messages_failed: int = 0
    candidates: int = 0
    inserted: int = 0
    error: str = ""


class MailSyncService(ABC):
    """
    邮箱同步服务接口

    定义同步调度器的契约，负责：
    - 按固定间隔触发同步周期
    - 同一时间只允许一个周期运行，卡死周期超时后强制复位
    - 幂等启动和优雅停止
    """

    DEFAULT_INTERVAL: float = 10.0  # 默认同步间隔（秒）
    DEFAULT_LOOKBACK_MINUTES: int = 8  # 默认回溯窗口（分钟）
    DEFAULT_STUCK_THRESHOLD: float = 120.0  # 默认卡死阈值（秒）
    DEFAULT_MAX_CONCURRENT_FETCHES: int = 4  # 默认并发获取消息数

    @property
    @abstractmethod
    def is_running(self) -> bool:
        """循环调度器是否正在运行"""
        raise NotImplementedError

    @property
    @abstractmethod
    def interval(self) -> float:
        """同步间隔（秒）"""
        raise NotImplementedError

    @property
    @abstractmethod
    def lookback_minutes(self) -> int:
        """回溯窗口（分钟）"""
        raise NotImplementedError

    @property
    @abstractmethod
    def stuck_threshold(self) -> float:
        """卡死阈值（秒）"""
        raise NotImplementedError

    @abstractmethod
    async def start(self) -> None:
        """
        启动循环调度器

        启动后立即执行第一次同步，之后按固定间隔触发。
        重复调用没有额外效果。
        """
        raise NotImplementedError

    @abstractmethod
    async def stop(self) -> None:
        """停止循环调度器，未运行时调用无效"""
        raise NotImplementedError

    @abstractmethod
    async def sync_once(self) -> SyncResult:
        """
        执行一次同步周期

        Returns:
            SyncResult 周期结果；已有周期运行时返回 SKIPPED
        """
        raise NotImplementedError

    @abstractmethod
    def snapshot(self) -> SyncStateSnapshot:
        """获取同步状态快照"""
        raise NotImplementedError
