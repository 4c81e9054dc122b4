from __future__ import annotations

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.taskqueue.domain.models.payloads import NewMessageTask
from src.taskqueue.domain.models.task import MessageTask
from src.taskqueue.domain.models.task_status import DeliveryStatus


class MessageTaskRepository(Protocol):
    """Repository contract for the durable message task table.

    Every method takes an optional session. A supplied session is used as the
    transaction scope and is left uncommitted; otherwise the operation runs in
    its own transaction.
    """

    async def create_task(
        self, new_task: NewMessageTask, session: AsyncSession | None = None
    ) -> int:
        """Insert a pending, enabled task and return its identifier."""

    async def find_enabled_task(
        self, task_id: int, session: AsyncSession | None = None
    ) -> MessageTask | None:
        """Return the task if it exists and is enabled, whatever its status."""

    async def enable_task(self, task_id: int, session: AsyncSession | None = None) -> None:
        """Make the task visible again. Idempotent."""

    async def disable_task(self, task_id: int, session: AsyncSession | None = None) -> None:
        """Hide the task from inspection and claiming. Idempotent."""

    async def list_sending_tasks(
        self, limit: int, session: AsyncSession | None = None
    ) -> list[MessageTask]:
        """Return up to ``limit`` claimable tasks, priority first, then oldest first."""

    async def update_task_status(
        self,
        task_id: int,
        status: DeliveryStatus,
        result: bytes = b"",
        session: AsyncSession | None = None,
    ) -> bool:
        """Conditionally move the task to ``status``; False means the transition was lost."""
