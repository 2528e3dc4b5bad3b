"""去重过滤服务"""

import logging
from typing import List, Optional, Sequence, Set

from domain.verification.entities.code_record import CodeRecord
from domain.verification.repositories.code_record_repository import CodeRecordRepository
from domain.verification.value_objects.dedup_key import DedupKey


class DedupFilterService:
    """
    去重过滤服务

    按固定大小分块查询已持久化的去重键，过滤掉已存在的候选记录。
    同一批次内重复的候选也只保留第一条。
    """

    DEFAULT_CHUNK_SIZE = 100

    def __init__(
        self,
        repository: CodeRecordRepository,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Args:
            repository: 验证码记录仓储
            chunk_size: 每次查询的候选数量上限
            logger: 可选的日志记录器
        """
        if chunk_size < 1:
            raise ValueError("chunk_size must be positive")

        self._repository = repository
        self._chunk_size = chunk_size
        self._logger = logger or logging.getLogger(__name__)

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    def filter_new(self, candidates: Sequence[CodeRecord]) -> List[CodeRecord]:
        """
        返回尚未持久化的候选记录

        Args:
            candidates: 候选记录

        Returns:
            新记录列表（保持输入顺序）
        """
        if not candidates:
            return []

        existing: Set[DedupKey] = set()
        for start in range(0, len(candidates), self._chunk_size):
            chunk = candidates[start:start + self._chunk_size]
            matched = self._repository.find_matching([c.dedup_key for c in chunk])
            existing.update(
                DedupKey.of(k.code, k.recipient, k.received_at) for k in matched
            )

        fresh: List[CodeRecord] = []
        seen: Set[DedupKey] = set()
        for candidate in candidates:
            key = candidate.dedup_key
            if key in existing or key in seen:
                continue
            seen.add(key)
            fresh.append(candidate)

        self._logger.debug(
            f"Dedup filter: {len(candidates)} candidates, "
            f"{len(existing)} already stored, {len(fresh)} new"
        )
        return fresh
