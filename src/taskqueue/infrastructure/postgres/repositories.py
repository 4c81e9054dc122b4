from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

from sqlalchemy import and_, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.taskqueue.domain.exceptions import (
    InvalidArgumentError,
    StorageError,
    TaskNotFoundError,
)
from src.taskqueue.domain.models.payloads import NewMessageTask
from src.taskqueue.domain.models.task import MessageTask
from src.taskqueue.domain.models.task_status import DeliveryStatus
from src.taskqueue.domain.models.task_visibility import TaskVisibility
from src.taskqueue.domain.repositories import MessageTaskRepository
from src.taskqueue.infrastructure.postgres.mappers import OrmMapper
from src.taskqueue.infrastructure.postgres.orm import MessageTaskRow, PostgresOrm

logger = logging.getLogger(__name__)


class PostgresMessageTaskRepository(MessageTaskRepository):
    """Message task storage on SQLAlchemy async sessions."""

    def __init__(self, orm: PostgresOrm, clock: Callable[[], float] = time.time) -> None:
        self._orm = orm
        self._clock = clock

    @asynccontextmanager
    async def _transaction(self, session: AsyncSession | None) -> AsyncIterator[AsyncSession]:
        try:
            if session is not None:
                # Caller owns the transaction; commit/rollback is theirs.
                yield session
                return
            async with self._orm.session_factory() as own_session:
                async with own_session.begin():
                    yield own_session
        except SQLAlchemyError as exc:
            raise StorageError(f"Message task storage failure: {exc}") from exc

    async def create_task(
        self, new_task: NewMessageTask, session: AsyncSession | None = None
    ) -> int:
        """Persist a new pending, enabled task and return its id."""
        row = OrmMapper.to_task_row(new_task, created_at=int(self._clock()))
        async with self._transaction(session) as tx:
            tx.add(row)
            await tx.flush()
            task_id = row.id
        if task_id is None:
            raise StorageError("Database did not assign an id to the new message task.")
        logger.debug(
            "Message task created id=%s recipient=%s instance=%s priority=%s",
            task_id,
            new_task.recipient_id,
            new_task.instance_id,
            new_task.is_priority,
        )
        return int(task_id)

    async def find_enabled_task(
        self, task_id: int, session: AsyncSession | None = None
    ) -> MessageTask | None:
        """Fetch a task by id, hiding disabled tasks."""
        async with self._transaction(session) as tx:
            result = await tx.execute(
                select(MessageTaskRow).where(
                    MessageTaskRow.id == task_id,
                    MessageTaskRow.state == int(TaskVisibility.ENABLED),
                )
            )
            row = result.scalar_one_or_none()
            return OrmMapper.to_domain_task(row) if row is not None else None

    async def enable_task(self, task_id: int, session: AsyncSession | None = None) -> None:
        await self._set_visibility(task_id, TaskVisibility.ENABLED, session)

    async def disable_task(self, task_id: int, session: AsyncSession | None = None) -> None:
        await self._set_visibility(task_id, TaskVisibility.DISABLED, session)

    async def _set_visibility(
        self,
        task_id: int,
        visibility: TaskVisibility,
        session: AsyncSession | None,
    ) -> None:
        if task_id <= 0:
            raise InvalidArgumentError(f"Invalid message task id: {task_id}")
        async with self._transaction(session) as tx:
            row = await tx.get(MessageTaskRow, task_id)
            if row is None:
                raise TaskNotFoundError(task_id)
            if row.state != int(visibility):
                row.state = int(visibility)
                await tx.flush()
        logger.debug("Message task visibility id=%s state=%s", task_id, visibility.name)

    async def list_sending_tasks(
        self, limit: int, session: AsyncSession | None = None
    ) -> list[MessageTask]:
        """List claimable tasks: priority first, then by ascending id."""
        if limit <= 0:
            return []
        statement = (
            select(MessageTaskRow)
            .where(
                MessageTaskRow.state == int(TaskVisibility.ENABLED),
                MessageTaskRow.status == int(DeliveryStatus.PENDING),
            )
            .order_by(MessageTaskRow.is_priority.desc(), MessageTaskRow.id.asc())
            .limit(limit)
        )
        async with self._transaction(session) as tx:
            result = await tx.execute(statement)
            rows = result.scalars().all()
            return [OrmMapper.to_domain_task(row) for row in rows]

    async def update_task_status(
        self,
        task_id: int,
        status: DeliveryStatus,
        result: bytes = b"",
        session: AsyncSession | None = None,
    ) -> bool:
        """
        Compare-and-swap the delivery status of a task.

        The UPDATE only matches rows whose current status may legally move to
        ``status``, so concurrent dispatchers racing for the same task see
        exactly one winner. Leaving PENDING also requires the task to be
        enabled, so a disabled task is never claimed; recording the outcome of
        an already claimed task ignores visibility. ``sent_at`` is stamped on
        every applied transition and ``result`` is only overwritten by a
        non-empty payload.
        """
        if task_id <= 0:
            raise InvalidArgumentError(f"Invalid message task id: {task_id}")
        try:
            status = DeliveryStatus(status)
        except ValueError as exc:
            raise InvalidArgumentError(f"Unknown delivery status: {status!r}") from exc
        sources = status.allowed_sources()
        if not sources:
            raise InvalidArgumentError(f"A task cannot be moved back to {status.name}.")

        values: dict[str, object] = {"status": int(status), "sent_at": int(self._clock())}
        if result:
            values["result"] = bytes(result)

        source_clauses = []
        for source in sources:
            clause = MessageTaskRow.status == int(source)
            if source is DeliveryStatus.PENDING:
                clause = and_(clause, MessageTaskRow.state == int(TaskVisibility.ENABLED))
            source_clauses.append(clause)

        statement = (
            update(MessageTaskRow)
            .where(MessageTaskRow.id == task_id, or_(*source_clauses))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        async with self._transaction(session) as tx:
            cursor = await tx.execute(statement)
            if cursor.rowcount == 1:
                logger.debug("Message task id=%s moved to %s", task_id, status.name)
                return True
            existing = await tx.scalar(select(MessageTaskRow.id).where(MessageTaskRow.id == task_id))
            if existing is None:
                raise TaskNotFoundError(task_id)
        logger.debug("Message task id=%s not moved to %s: transition lost", task_id, status.name)
        return False
