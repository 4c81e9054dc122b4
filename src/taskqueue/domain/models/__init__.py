from src.taskqueue.domain.models.payloads import NewMessageTask
from src.taskqueue.domain.models.task import MessageTask
from src.taskqueue.domain.models.task_status import DeliveryStatus
from src.taskqueue.domain.models.task_visibility import TaskVisibility

__all__ = [
    "MessageTask",
    "NewMessageTask",
    "DeliveryStatus",
    "TaskVisibility",
]
