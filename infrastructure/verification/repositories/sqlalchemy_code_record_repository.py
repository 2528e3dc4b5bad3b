"""验证码记录 SQLAlchemy 仓储实现"""

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence, Union
from uuid import UUID

from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from domain.verification.entities.code_record import CodeRecord
from domain.verification.repositories.code_record_repository import CodeRecordRepository
from domain.verification.value_objects.dedup_key import DedupKey, normalize_timestamp
from infrastructure.verification.models.code_record_model import CodeRecordModel


def to_db_datetime(value: datetime) -> datetime:
    """转为无时区 UTC（毫秒精度），与数据库存储格式一致"""
    return normalize_timestamp(value).replace(tzinfo=None)


def from_db_datetime(value: datetime) -> datetime:
    """数据库中的无时区 UTC 转为带时区时间"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SqlAlchemyCodeRecordRepository(CodeRecordRepository):
    """
    验证码记录 SQLAlchemy 仓储实现

    提供验证码记录的持久化操作。唯一约束冲突视为重复记录并跳过。

    传入 Session 工厂时，Session（以及引擎和表结构）在第一次查询时才创建，
    数据库不可用的错误由具体操作抛出。
    """

    def __init__(
        self,
        session: Union[Session, Callable[[], Session]],
        logger: Optional[logging.Logger] = None,
    ):
        """
        初始化仓储

        Args:
            session: SQLAlchemy Session 或 Session 工厂
            logger: 可选的日志记录器
        """
        if isinstance(session, Session):
            self._current: Optional[Session] = session
            self._session_factory: Optional[Callable[[], Session]] = None
        else:
            self._current = None
            self._session_factory = session
        self._logger = logger or logging.getLogger(__name__)

    @property
    def _session(self) -> Session:
        if self._current is None:
            self._current = self._session_factory()
        return self._current

    def find_matching(self, keys: Sequence[DedupKey]) -> List[DedupKey]:
        """查找已存在的去重键"""
        if not keys:
            return []

        conditions = [
            and_(
                CodeRecordModel.code == key.code,
                CodeRecordModel.recipient == key.recipient,
                CodeRecordModel.received_at == to_db_datetime(key.received_at),
            )
            for key in keys
        ]

        rows = (
            self._session.query(
                CodeRecordModel.code,
                CodeRecordModel.recipient,
                CodeRecordModel.received_at,
            )
            .filter(or_(*conditions))
            .all()
        )

        return [
            DedupKey.of(code, recipient, from_db_datetime(received_at))
            for code, recipient, received_at in rows
        ]

    def insert_many(self, records: Sequence[CodeRecord]) -> int:
        """
        批量插入

        先整批提交；唯一约束冲突时回滚并逐条插入，跳过重复记录。
        """
        if not records:
            return 0

        try:
            self._session.add_all([self._to_model(record) for record in records])
            self._session.commit()
            return len(records)
        except IntegrityError:
            self._session.rollback()
            self._logger.info("Bulk insert hit a duplicate key, retrying row by row")

        inserted = 0
        for record in records:
            try:
                self._session.add(self._to_model(record))
                self._session.commit()
                inserted += 1
            except IntegrityError:
                self._session.rollback()
                self._logger.debug(
                    f"Skipping duplicate code {record.code} for {record.recipient}"
                )
        return inserted

    def find_recent(
        self,
        since: datetime,
        recipient: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[CodeRecord]:
        """查询某时间之后收到的记录，按接收时间降序"""
        query = self._session.query(CodeRecordModel).filter(
            CodeRecordModel.received_at > to_db_datetime(since)
        )

        if recipient is not None:
            query = query.filter(CodeRecordModel.recipient == recipient.strip().lower())

        query = query.order_by(CodeRecordModel.received_at.desc())

        if limit is not None:
            query = query.limit(limit)

        return [self._to_entity(model) for model in query.all()]

    def close(self) -> None:
        """关闭 Session（未创建时什么都不做）"""
        if self._current is not None:
            self._current.close()

    def _to_model(self, entity: CodeRecord) -> CodeRecordModel:
        """将领域实体转换为数据模型"""
        return CodeRecordModel(
            id=str(entity.id),
            code=entity.code,
            recipient=entity.recipient,
            sender=entity.sender,
            subject=entity.subject,
            received_at=to_db_datetime(entity.received_at),
            is_protected=entity.is_protected,
            created_at=to_db_datetime(entity.created_at),
            version=entity.version,
        )

    def _to_entity(self, model: CodeRecordModel) -> CodeRecord:
        """将数据模型转换为领域实体"""
        return CodeRecord(
            id=UUID(model.id),
            code=model.code,
            recipient=model.recipient,
            sender=model.sender,
            subject=model.subject,
            received_at=from_db_datetime(model.received_at),
            is_protected=model.is_protected,
            created_at=from_db_datetime(model.created_at),
            version=model.version,
        )
