from __future__ import annotations

import base64

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field, field_validator

from src.setup.api_config import get_api_settings
from src.taskqueue.application.services import MessageTaskService
from src.taskqueue.domain.exceptions import (
    InvalidArgumentError,
    StorageError,
    TaskNotFoundError,
)
from src.taskqueue.domain.models import DeliveryStatus, MessageTask, NewMessageTask, TaskVisibility

router = APIRouter(prefix="/message-tasks", tags=["message-tasks"])

# Instantiate services once (simple DI)
_settings = get_api_settings()
_service = MessageTaskService()


class CreateTaskResponse(BaseModel):
    task_id: int = Field(..., description="Identifier of the new message task")


class SuccessResponse(BaseModel):
    success: bool = True


class StatusUpdateRequest(BaseModel):
    status: DeliveryStatus = Field(..., description="1=in progress, 2=succeeded, 3=failed")
    result: str = Field(default="", description="Base64 delivery response or error detail")

    @field_validator("result")
    @classmethod
    def check_base64(cls, value: str) -> str:
        try:
            base64.b64decode(value, validate=True)
        except ValueError as exc:
            raise ValueError("result must be base64 encoded") from exc
        return value

    def result_bytes(self) -> bytes:
        return base64.b64decode(self.result)


class StatusUpdateResponse(BaseModel):
    updated: bool = Field(..., description="False when another dispatcher moved the task first")


class MessageTaskView(BaseModel):
    id: int
    recipient_id: int
    instance_id: int
    user: str
    subject: str
    body: str
    is_priority: bool
    visibility: TaskVisibility
    status: DeliveryStatus
    created_at: int | None = None
    completed_at: int | None = None
    result: str | None = Field(default=None, description="Base64 delivery result")

    @classmethod
    def from_task(cls, task: MessageTask) -> MessageTaskView:
        return cls(
            **task.model_dump(exclude={"result"}),
            result=base64.b64encode(task.result).decode("ascii") if task.result else None,
        )


@router.post("", response_model=CreateTaskResponse, summary="Queue a message task")
async def create_task(body: NewMessageTask):
    try:
        task_id = await _service.create_task(body)
    except StorageError:
        raise HTTPException(status_code=500)  # noqa: B904
    return CreateTaskResponse(task_id=task_id)


@router.get(
    "/pending",
    response_model=list[MessageTaskView],
    summary="List claimable tasks",
    description="Priority tasks first, then oldest first. Listing does not claim.",
)
async def list_pending(
    limit: int = Query(10, le=_settings.MAX_LIST_LIMIT, description="Maximum number of tasks"),
):
    try:
        tasks = await _service.list_pending(limit)
    except StorageError:
        raise HTTPException(status_code=500)  # noqa: B904
    return [MessageTaskView.from_task(task) for task in tasks]


@router.get("/{task_id}", response_model=MessageTaskView, summary="Inspect an enabled task")
async def get_task(task_id: int):
    try:
        task = await _service.get_visible_task(task_id)
    except TaskNotFoundError:
        raise HTTPException(status_code=404, detail="Task not found")  # noqa: B904
    except StorageError:
        raise HTTPException(status_code=500)  # noqa: B904
    return MessageTaskView.from_task(task)


@router.post("/{task_id}/enable", response_model=SuccessResponse)
async def enable_task(task_id: int):
    await _toggle(task_id, enable=True)
    return SuccessResponse()


@router.post("/{task_id}/disable", response_model=SuccessResponse)
async def disable_task(task_id: int):
    await _toggle(task_id, enable=False)
    return SuccessResponse()


async def _toggle(task_id: int, *, enable: bool) -> None:
    try:
        if enable:
            await _service.enable_task(task_id)
        else:
            await _service.disable_task(task_id)
    except InvalidArgumentError as exc:
        raise HTTPException(status_code=400, detail=str(exc))  # noqa: B904
    except TaskNotFoundError:
        raise HTTPException(status_code=404, detail="Task not found")  # noqa: B904
    except StorageError:
        raise HTTPException(status_code=500)  # noqa: B904


@router.post(
    "/{task_id}/status",
    response_model=StatusUpdateResponse,
    summary="Record a delivery status",
)
async def record_status(task_id: int, body: StatusUpdateRequest):
    try:
        updated = await _service.record_status(
            task_id, body.status, body.result_bytes()
        )
    except InvalidArgumentError as exc:
        raise HTTPException(status_code=400, detail=str(exc))  # noqa: B904
    except TaskNotFoundError:
        raise HTTPException(status_code=404, detail="Task not found")  # noqa: B904
    except StorageError:
        raise HTTPException(status_code=500)  # noqa: B904
    return StatusUpdateResponse(updated=updated)
