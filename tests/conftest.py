"""共享测试夹具"""

from datetime import datetime
from typing import List, Optional, Sequence

import pytest

from domain.verification.entities.code_record import CodeRecord
from domain.verification.repositories.code_record_repository import CodeRecordRepository
from domain.verification.value_objects.dedup_key import DedupKey


class InMemoryCodeRecordRepository(CodeRecordRepository):
    """内存版验证码仓储"""

    def __init__(self) -> None:
        self.records: List[CodeRecord] = []
        self.find_matching_calls: List[int] = []
        self.insert_calls = 0
        self.closed = 0

    def find_matching(self, keys: Sequence[DedupKey]) -> List[DedupKey]:
        self.find_matching_calls.append(len(keys))
        stored = {record.dedup_key for record in self.records}
        return [key for key in keys if key in stored]

    def insert_many(self, records: Sequence[CodeRecord]) -> int:
        self.insert_calls += 1
        stored = {record.dedup_key for record in self.records}
        inserted = 0
        for record in records:
            if record.dedup_key in stored:
                continue
            stored.add(record.dedup_key)
            self.records.append(record)
            inserted += 1
        return inserted

    def find_recent(
        self,
        since: datetime,
        recipient: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[CodeRecord]:
        matched = [
            r for r in self.records
            if r.received_at > since and (recipient is None or r.recipient == recipient)
        ]
        matched.sort(key=lambda r: r.received_at, reverse=True)
        return matched[:limit] if limit is not None else matched

    def close(self) -> None:
        self.closed += 1


@pytest.fixture
def code_repository():
    """内存版验证码仓储"""
    return InMemoryCodeRecordRepository()
