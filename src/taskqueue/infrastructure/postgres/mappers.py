from __future__ import annotations

import time

from src.taskqueue.domain.models.payloads import NewMessageTask
from src.taskqueue.domain.models.task import MessageTask
from src.taskqueue.domain.models.task_status import DeliveryStatus
from src.taskqueue.domain.models.task_visibility import TaskVisibility
from src.taskqueue.infrastructure.postgres.orm import MessageTaskRow


class OrmMapper:
    @staticmethod
    def to_task_row(new_task: NewMessageTask, created_at: int | None = None) -> MessageTaskRow:
        return MessageTaskRow(
            recipient_id=new_task.recipient_id,
            instance_id=new_task.instance_id,
            user=new_task.user,
            subject=new_task.subject,
            body=new_task.body,
            is_priority=new_task.is_priority,
            state=int(TaskVisibility.ENABLED),
            status=int(DeliveryStatus.PENDING),
            created_at=int(time.time()) if created_at is None else created_at,
        )

    @staticmethod
    def to_domain_task(row: MessageTaskRow) -> MessageTask:
        return MessageTask(
            id=row.id,
            recipient_id=row.recipient_id,
            instance_id=row.instance_id,
            user=row.user or "",
            subject=row.subject or "",
            body=row.body or "",
            is_priority=bool(row.is_priority),
            visibility=TaskVisibility(row.state),
            status=DeliveryStatus(row.status),
            created_at=row.created_at,
            completed_at=row.sent_at,
            result=row.result,
        )
