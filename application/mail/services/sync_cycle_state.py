"""同步周期状态"""

import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class CycleAdmission(str, Enum):
    """新触发的准入结果

    Attributes:
        STARTED: 空闲状态下正常开始新周期
        RECOVERED: 上一周期卡死超时，被强制复位后开始新周期
        SKIPPED: 上一周期仍在运行，本次触发被忽略
    """

    STARTED = "started"
    RECOVERED = "recovered"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class CycleTicket:
    """
    周期凭证

    finish() 只接受当前周期的凭证，被强制复位的旧周期晚到的 finish()
    不会把新周期标记为结束。
    """

    generation: int
    admission: CycleAdmission


@dataclass(frozen=True)
class SyncStateSnapshot:
    """同步状态快照（只读）"""

    in_progress: bool
    started_at: Optional[datetime]
    loop_running: bool
    cursor: Optional[datetime]
    last_completed_at: Optional[datetime]


class SyncCycleState:
    """
    同步周期状态（进程内，不持久化）

    由调度器实例持有并注入，避免全局可变状态。状态机：
    Idle -> Running -> Idle，Running 超过卡死阈值时再次触发会强制回到 Idle 并立即开始新周期。

    Attributes:
        in_progress: 是否有周期在运行
        started_at: 当前周期开始时间
        loop_running: 循环调度器是否已启动
        cursor: 已观察到的最新消息时间（仅供展示）
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._generation = 0
        self.in_progress = False
        self.started_at: Optional[datetime] = None
        self.loop_running = False
        self.cursor: Optional[datetime] = None
        self.last_completed_at: Optional[datetime] = None

    def try_begin(self, now: datetime, stuck_threshold: float) -> Optional[CycleTicket]:
        """
        尝试进入 Running 状态

        Args:
            now: 当前时间
            stuck_threshold: 卡死阈值（秒）

        Returns:
            CycleTicket；如果上一周期仍在运行且未超时，返回 None
        """
        with self._lock:
            admission = CycleAdmission.STARTED
            if self.in_progress:
                elapsed = (now - self.started_at).total_seconds() if self.started_at else 0.0
                if elapsed <= stuck_threshold:
                    return None
                admission = CycleAdmission.RECOVERED

            self._generation += 1
            self.in_progress = True
            self.started_at = now
            return CycleTicket(generation=self._generation, admission=admission)

    def finish(self, ticket: CycleTicket, now: Optional[datetime] = None) -> bool:
        """
        结束周期，回到 Idle

        Returns:
            True 如果凭证属于当前周期并已复位；旧周期的凭证返回 False
        """
        with self._lock:
            if ticket.generation != self._generation or not self.in_progress:
                return False
            self.in_progress = False
            self.started_at = None
            if now is not None:
                self.last_completed_at = now
            return True

    def advance_cursor(self, position: Optional[datetime]) -> None:
        """游标只前进不后退"""
        if position is None:
            return
        with self._lock:
            if self.cursor is None or position > self.cursor:
                self.cursor = position

    def snapshot(self) -> SyncStateSnapshot:
        with self._lock:
            return SyncStateSnapshot(
                in_progress=self.in_progress,
                started_at=self.started_at,
                loop_running=self.loop_running,
                cursor=self.cursor,
                last_completed_at=self.last_completed_at,
            )
