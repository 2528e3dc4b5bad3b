"""异步邮箱同步服务实现"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Set

from application.mail.services.mail_sync_service import (
    MailSyncService,
    SyncResult,
    SyncStatus,
)
from application.mail.services.sync_cycle_state import (
    CycleAdmission,
    SyncCycleState,
    SyncStateSnapshot,
)
from application.verification.services.code_record_builder import CodeRecordBuilder
from application.verification.services.dedup_filter_service import DedupFilterService
from domain.mail.services.mailbox_client import MailboxClient
from domain.mail.value_objects.message_query import MessageQuery
from domain.verification.entities.code_record import CodeRecord
from domain.verification.repositories.code_record_repository import CodeRecordRepository


class AsyncMailSyncService(MailSyncService):
    """
    异步邮箱同步服务实现

    使用 asyncio 按固定频率（从循环启动开始计时）触发同步周期，支持：
    - 启动后立即执行第一次同步
    - 周期重叠时跳过新触发，而不是排队
    - 周期运行超过卡死阈值时强制复位，立即开始新周期
    - 线程池 + Semaphore 限制并发获取消息
    - 单封邮件失败不影响整批
    - 整批候选记录一次性去重后批量写入

    阻塞的邮箱和存储调用都在线程池中执行。
    """

    def __init__(
        self,
        mailbox_client: MailboxClient,
        record_builder: CodeRecordBuilder,
        code_repository: CodeRecordRepository | Callable[[], CodeRecordRepository],
        interval: float = MailSyncService.DEFAULT_INTERVAL,
        lookback_minutes: int = MailSyncService.DEFAULT_LOOKBACK_MINUTES,
        stuck_threshold: float = MailSyncService.DEFAULT_STUCK_THRESHOLD,
        dedup_chunk_size: int = DedupFilterService.DEFAULT_CHUNK_SIZE,
        max_concurrent_fetches: int = MailSyncService.DEFAULT_MAX_CONCURRENT_FETCHES,
        state: Optional[SyncCycleState] = None,
        clock: Optional[Callable[[], datetime]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        初始化异步邮箱同步服务

        Args:
            mailbox_client: 邮箱客户端
            record_builder: 验证码记录构建服务
            code_repository: 验证码仓储实例或工厂函数（每个周期创建独立实例）
            interval: 同步间隔（秒），默认 10 秒
            lookback_minutes: 回溯窗口（分钟），默认 8 分钟
            stuck_threshold: 卡死阈值（秒），默认 120 秒
            dedup_chunk_size: 去重查询分块大小，默认 100
            max_concurrent_fetches: 并发获取消息数，默认 4
            state: 同步周期状态，不传则创建新实例
            clock: 当前时间函数（测试用）
            logger: 可选的日志记录器
        """
        self._mailbox_client = mailbox_client
        self._record_builder = record_builder
        if callable(code_repository) and not isinstance(code_repository, CodeRecordRepository):
            self._repository_factory: Callable[[], CodeRecordRepository] = code_repository
        else:
            self._repository_factory = lambda repo=code_repository: repo  # type: ignore
        self._interval = interval
        self._lookback_minutes = lookback_minutes
        self._stuck_threshold = stuck_threshold
        self._dedup_chunk_size = dedup_chunk_size
        self._max_concurrent = max(1, max_concurrent_fetches)
        self._state = state or SyncCycleState()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._logger = logger or logging.getLogger(__name__)

        self._executor: Optional[ThreadPoolExecutor] = None
        self._task: Optional[asyncio.Task] = None
        self._cycle_tasks: Set[asyncio.Task] = set()

    @property
    def is_running(self) -> bool:
        """检查循环调度器是否正在运行"""
        return self._state.loop_running and self._task is not None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def lookback_minutes(self) -> int:
        return self._lookback_minutes

    @property
    def stuck_threshold(self) -> float:
        return self._stuck_threshold

    @property
    def state(self) -> SyncCycleState:
        return self._state

    def snapshot(self) -> SyncStateSnapshot:
        return self._state.snapshot()

    async def start(self) -> None:
        """
        启动循环调度器（幂等）

        启动后立即执行第一次同步，之后每隔 interval 秒触发一次。
        """
        if self._state.loop_running:
            self._logger.debug("[SYNC] Sync loop already running")
            return

        self._state.loop_running = True
        self._executor = ThreadPoolExecutor(
            max_workers=self._max_concurrent + 2,
            thread_name_prefix="mail-sync-",
        )
        self._task = asyncio.create_task(self._sync_loop())
        self._logger.info(
            f"[SYNC] Starting background sync loop "
            f"(interval={self._interval}s, "
            f"lookback={self._lookback_minutes}m, "
            f"stuck_threshold={self._stuck_threshold}s)"
        )

    async def stop(self) -> None:
        """
        停止循环调度器

        取消调度任务和正在运行的周期，关闭线程池。
        """
        if not self._state.loop_running and self._task is None:
            return

        self._state.loop_running = False

        tasks = [t for t in (self._task, *self._cycle_tasks) if t is not None]
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._task = None
        self._cycle_tasks.clear()

        if self._executor:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None

        self._logger.info("[SYNC] Sync loop stopped")

    async def _sync_loop(self) -> None:
        """固定频率触发：每个 tick 启动一个周期任务，不等待其完成"""
        while self._state.loop_running:
            self._spawn_cycle()
            await asyncio.sleep(self._interval)

    def _spawn_cycle(self) -> None:
        task = asyncio.create_task(self._run_scheduled_cycle())
        self._cycle_tasks.add(task)
        task.add_done_callback(self._cycle_tasks.discard)

    async def _run_scheduled_cycle(self) -> None:
        try:
            await self.sync_once()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._logger.error(f"[SYNC] Interval sync error: {e}")

    async def sync_once(self) -> SyncResult:
        """
        执行一次同步周期

        已有周期运行且未超时时直接跳过；周期内的任何异常都会被记录，
        周期结束后状态总是回到 Idle。
        """
        started_at = self._clock()
        ticket = self._state.try_begin(started_at, self._stuck_threshold)

        if ticket is None:
            self._logger.debug("[SYNC] Skipping - sync already in progress")
            return SyncResult(status=SyncStatus.SKIPPED)

        if ticket.admission == CycleAdmission.RECOVERED:
            self._logger.warning(
                f"[SYNC] Sync appears stuck (started >{self._stuck_threshold:.0f}s ago). "
                f"Forcing reset."
            )

        result = SyncResult(
            status=SyncStatus.COMPLETED,
            recovered=ticket.admission == CycleAdmission.RECOVERED,
        )

        try:
            await self._run_cycle(started_at, result)
        except Exception as e:
            self._logger.error(f"[SYNC] Error during sync cycle: {e}")
            result.status = SyncStatus.FAILED
            result.error = str(e)
        finally:
            if not self._state.finish(ticket, self._clock()):
                self._logger.warning("[SYNC] Stale cycle finished after a forced reset")

        duration = (self._clock() - started_at).total_seconds()
        self._logger.debug(
            f"[SYNC] Cycle {result.status.value}: {result.messages_found} messages, "
            f"{result.messages_failed} failed, {result.candidates} candidates, "
            f"{result.inserted} saved, {duration:.2f}s"
        )
        return result

    async def _run_cycle(self, now: datetime, result: SyncResult) -> None:
        since = now - timedelta(minutes=self._lookback_minutes)
        query = MessageQuery(received_after=since)

        self._logger.info(f"[SYNC] Searching mailbox: after={query.after_epoch}")
        message_ids = await self._run_blocking(self._list_all_message_ids, query)
        result.messages_found = len(message_ids)

        if not message_ids:
            self._logger.info("[SYNC] No messages found in lookback window.")
            return

        self._logger.info(f"[SYNC] Found {len(message_ids)} message(s) in window")

        candidates = await self._collect_candidates(message_ids, since, result)
        result.candidates = len(candidates)

        if not candidates:
            self._logger.info("[SYNC] No valid codes extracted.")
            return

        result.inserted = await self._run_blocking(self._persist, candidates)
        self._state.advance_cursor(max(record.received_at for record in candidates))

    async def _run_blocking(self, func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, func, *args)

    def _list_all_message_ids(self, query: MessageQuery) -> List[str]:
        """分页列出所有消息 ID，直到没有下一页"""
        message_ids: List[str] = []
        seen_ids: Set[str] = set()
        seen_tokens: Set[str] = set()
        page_token: Optional[str] = None

        while True:
            page = self._mailbox_client.list_message_ids(query, page_token)
            for message_id in page.ids:
                if message_id not in seen_ids:
                    seen_ids.add(message_id)
                    message_ids.append(message_id)

            page_token = page.next_page_token
            if not page_token:
                break
            if page_token in seen_tokens:
                self._logger.warning(f"[SYNC] Repeated page token {page_token}, stopping pagination")
                break
            seen_tokens.add(page_token)

        return message_ids

    async def _collect_candidates(
        self, message_ids: List[str], since: datetime, result: SyncResult
    ) -> List[CodeRecord]:
        """
        并发获取并解析消息，单封失败只记录日志

        按天搜索的后端会返回窗口之前的消息，这些记录在这里丢弃；
        按时间精确搜索的后端（Gmail）以后端的接收时间为准，不再按 Date 头过滤。
        """
        semaphore = asyncio.Semaphore(self._max_concurrent)

        async def fetch(message_id: str) -> List[CodeRecord]:
            async with semaphore:
                return await self._run_blocking(self._fetch_and_build, message_id)

        outcomes = await asyncio.gather(
            *(fetch(message_id) for message_id in message_ids),
            return_exceptions=True,
        )

        candidates: List[CodeRecord] = []
        trim_to_window = bool(self._mailbox_client.DAY_GRANULARITY_SEARCH)
        for message_id, outcome in zip(message_ids, outcomes):
            if isinstance(outcome, BaseException):
                result.messages_failed += 1
                self._logger.error(f"[SYNC] Error fetching message {message_id}: {outcome}")
                continue

            for record in outcome:
                if trim_to_window and record.received_at < since:
                    self._logger.debug(
                        f"[SYNC] Message {message_id} is older than the lookback window, skipping"
                    )
                    continue
                candidates.append(record)

        return candidates

    def _fetch_and_build(self, message_id: str) -> List[CodeRecord]:
        message = self._mailbox_client.get_message(message_id)
        return self._record_builder.build(message)

    def _persist(self, candidates: List[CodeRecord]) -> int:
        """整批去重后一次性写入"""
        repository = self._repository_factory()
        try:
            fresh = DedupFilterService(
                repository, chunk_size=self._dedup_chunk_size, logger=self._logger
            ).filter_new(candidates)

            if not fresh:
                self._logger.info("[SYNC] No new unique codes (all duplicates)")
                return 0

            inserted = repository.insert_many(fresh)
            self._logger.info(f"[SYNC] Saved {inserted} new code(s)")
            return inserted
        finally:
            repository.close()
