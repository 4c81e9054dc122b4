from __future__ import annotations

import logging
from typing import Protocol

from src.taskqueue.domain.models.task import MessageTask

logger = logging.getLogger(__name__)


class MessageSender(Protocol):
    async def send(self, task: MessageTask) -> bytes:
        """Deliver the message and return the raw delivery response."""


class LoggingMessageSender(MessageSender):
    """Sender for local runs: writes the message to the log instead of delivering it."""

    async def send(self, task: MessageTask) -> bytes:
        logger.info(
            "Delivering message task id=%s recipient=%s instance=%s user=%s subject=%r",
            task.id,
            task.recipient_id,
            task.instance_id,
            task.user,
            task.subject,
        )
        return b"logged"
