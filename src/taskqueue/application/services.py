from typing import cast

import inject

from src.taskqueue.domain.exceptions import TaskNotFoundError
from src.taskqueue.domain.models import DeliveryStatus, MessageTask, NewMessageTask
from src.taskqueue.domain.repositories import MessageTaskRepository


class MessageTaskService:
    """Entry point of the message task queue for producers and dispatchers."""

    def __init__(self, repository: MessageTaskRepository | None = None) -> None:
        self._repository = repository or cast(
            MessageTaskRepository, inject.instance(MessageTaskRepository)
        )

    async def create_task(self, new_task: NewMessageTask) -> int:
        """Store a new pending task and return its id."""
        return await self._repository.create_task(new_task)

    async def get_visible_task(self, task_id: int) -> MessageTask:
        """Return an enabled task, raising ``TaskNotFoundError`` for missing or disabled ids."""
        task = await self._repository.find_enabled_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    async def enable_task(self, task_id: int) -> None:
        await self._repository.enable_task(task_id)

    async def disable_task(self, task_id: int) -> None:
        await self._repository.disable_task(task_id)

    async def list_pending(self, limit: int) -> list[MessageTask]:
        """Snapshot of claimable tasks. Reading does not claim anything."""
        if limit <= 0:
            return []
        return await self._repository.list_sending_tasks(limit)

    async def record_status(
        self, task_id: int, status: DeliveryStatus, result: bytes = b""
    ) -> bool:
        """Record a delivery status. False means another caller already moved the task."""
        return await self._repository.update_task_status(task_id, status, result)

    async def claim_task(self, task_id: int) -> bool:
        """Soft-claim a pending task; only the caller that gets True may deliver it."""
        return await self.record_status(task_id, DeliveryStatus.IN_PROGRESS)
