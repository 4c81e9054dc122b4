from pydantic import BaseModel, Field

from src.taskqueue.domain.models.task_status import DeliveryStatus
from src.taskqueue.domain.models.task_visibility import TaskVisibility


class MessageTask(BaseModel):
    id: int = Field(gt=0, description="Unique task identifier, assigned on insert.")
    recipient_id: int = Field(description="Recipient receiving the message.")
    instance_id: int = Field(description="Delivery instance used to send the message.")
    user: str = Field(default="", description="Target user on the delivery instance.")
    subject: str = Field(default="", description="Message subject.")
    body: str = Field(default="", description="Message body.")
    is_priority: bool = Field(default=False, description="Deliver ahead of normal tasks.")
    visibility: TaskVisibility = Field(
        default=TaskVisibility.ENABLED, description="Whether the task can be surfaced."
    )
    status: DeliveryStatus = Field(
        default=DeliveryStatus.PENDING, description="Current delivery status."
    )
    created_at: int | None = Field(default=None, description="Creation time, epoch seconds.")
    completed_at: int | None = Field(
        default=None, description="Time of the last recorded status, epoch seconds."
    )
    result: bytes | None = Field(default=None, description="Opaque delivery result payload.")
