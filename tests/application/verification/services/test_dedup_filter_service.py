"""DedupFilterService 单元测试"""

from datetime import datetime, timezone

import pytest

from application.verification.services.dedup_filter_service import DedupFilterService
from domain.verification.entities.code_record import CodeRecord

AT = datetime(2024, 1, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)


def record(code, recipient="a@x.com", received_at=AT):
    return CodeRecord.create(code=code, recipient=recipient, received_at=received_at)


class TestFilterNew:
    """过滤已存在的候选"""

    def test_all_new(self, code_repository):
        """测试全部为新记录"""
        candidates = [record("111111"), record("222222")]

        assert DedupFilterService(code_repository).filter_new(candidates) == candidates

    def test_filters_existing(self, code_repository):
        """测试过滤已持久化的记录"""
        code_repository.insert_many([record("111111")])
        fresh = record("222222")

        result = DedupFilterService(code_repository).filter_new([record("111111"), fresh])

        assert result == [fresh]

    def test_same_code_different_recipient_is_new(self, code_repository):
        """测试不同收件人的相同验证码不是重复"""
        code_repository.insert_many([record("111111", recipient="a@x.com")])

        result = DedupFilterService(code_repository).filter_new([record("111111", recipient="b@x.com")])

        assert len(result) == 1

    def test_same_code_different_time_is_new(self, code_repository):
        """测试不同时间的相同验证码不是重复"""
        code_repository.insert_many([record("111111")])
        later = record("111111", received_at=AT.replace(second=5))

        assert DedupFilterService(code_repository).filter_new([later]) == [later]

    def test_duplicates_within_batch(self, code_repository):
        """测试批次内重复只保留第一条"""
        first = record("111111")
        result = DedupFilterService(code_repository).filter_new([first, record("111111")])

        assert result == [first]

    def test_idempotent(self, code_repository):
        """测试重复执行不会新增记录"""
        service = DedupFilterService(code_repository)
        candidates = [record("111111"), record("222222")]

        code_repository.insert_many(service.filter_new(candidates))
        assert service.filter_new(candidates) == []

    def test_chunking(self, code_repository):
        """测试按块查询"""
        candidates = [record(f"{i:06d}") for i in range(5)]

        DedupFilterService(code_repository, chunk_size=2).filter_new(candidates)

        assert code_repository.find_matching_calls == [2, 2, 1]

    def test_empty_candidates(self, code_repository):
        """测试空候选不查询存储"""
        assert DedupFilterService(code_repository).filter_new([]) == []
        assert code_repository.find_matching_calls == []

    def test_invalid_chunk_size(self, code_repository):
        """测试非法分块大小"""
        with pytest.raises(ValueError):
            DedupFilterService(code_repository, chunk_size=0)
