from __future__ import annotations

import asyncio
import logging

from src.taskqueue.application.services import MessageTaskService
from src.taskqueue.domain.exceptions import StorageError
from src.taskqueue.domain.models import DeliveryStatus, MessageTask
from src.taskqueue.worker.sender import MessageSender

logger = logging.getLogger(__name__)


class MessageDispatcher:
    """
    Polling loop that drains the queue through a ``MessageSender``.

    Several dispatchers may poll the same store. Each task is claimed with a
    conditional status update before delivery, and a lost claim means some
    other dispatcher owns the task.
    """

    def __init__(
        self,
        service: MessageTaskService,
        sender: MessageSender,
        *,
        batch_size: int = 32,
        poll_interval_seconds: float = 1.0,
    ) -> None:
        self._service = service
        self._sender = sender
        self._batch_size = batch_size
        self._poll_interval = poll_interval_seconds

    async def run_once(self) -> int:
        """Process one batch and return how many tasks reached a terminal status."""
        tasks = await self._service.list_pending(self._batch_size)
        processed = 0
        for task in tasks:
            try:
                if not await self._service.claim_task(task.id):
                    logger.debug("Claim lost for message task id=%s", task.id)
                    continue
                if await self._deliver(task):
                    processed += 1
            except StorageError:
                logger.exception("Storage failure while dispatching message task id=%s", task.id)
        return processed

    async def _deliver(self, task: MessageTask) -> bool:
        try:
            response = await self._sender.send(task)
        except Exception as exc:
            logger.exception("Delivery failed for message task id=%s", task.id)
            detail = str(exc) or exc.__class__.__name__
            return await self._service.record_status(
                task.id, DeliveryStatus.FAILED, detail.encode("utf-8")
            )
        logger.info("Message task id=%s delivered", task.id)
        return await self._service.record_status(task.id, DeliveryStatus.SUCCEEDED, response or b"")

    async def run_forever(self) -> None:
        logger.info(
            "Message dispatcher started batch_size=%s poll_interval=%.2fs",
            self._batch_size,
            self._poll_interval,
        )
        while True:
            try:
                processed = await self.run_once()
            except StorageError:
                # Tasks of the failed batch keep their stored status for the operator.
                logger.exception("Dispatch cycle aborted by a storage failure")
                processed = 0
            if processed == 0:
                await asyncio.sleep(self._poll_interval)
