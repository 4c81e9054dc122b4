import asyncio
from dataclasses import dataclass, field

import pytest

from src.taskqueue.application.services import MessageTaskService
from src.taskqueue.domain.exceptions import StorageError
from src.taskqueue.domain.models import DeliveryStatus, MessageTask
from src.taskqueue.worker.dispatcher import MessageDispatcher
from src.taskqueue.worker.sender import LoggingMessageSender

from .fakes import StubMessageTaskRepository, make_new_task


@dataclass
class RecordingSender:
    """Sender double that records deliveries and fails selected subjects."""

    fail_subjects: set[str] = field(default_factory=set)
    sent: list[int] = field(default_factory=list)

    async def send(self, task: MessageTask) -> bytes:
        await asyncio.sleep(0)
        if task.subject in self.fail_subjects:
            raise ConnectionError("smtp refused")
        self.sent.append(task.id)
        return f"delivered:{task.id}".encode()


@pytest.mark.asyncio
async def test_run_once_delivers_in_priority_order() -> None:
    repository = StubMessageTaskRepository()
    service = MessageTaskService(repository)
    a = await service.create_task(make_new_task("A", is_priority=True))
    b = await service.create_task(make_new_task("B"))
    c = await service.create_task(make_new_task("C", is_priority=True))
    sender = RecordingSender()

    processed = await MessageDispatcher(service, sender, batch_size=10).run_once()

    assert processed == 3
    assert sender.sent == [a, c, b]
    assert repository.tasks[a].status is DeliveryStatus.SUCCEEDED
    assert repository.tasks[a].result == f"delivered:{a}".encode()


@pytest.mark.asyncio
async def test_run_once_records_failures_with_error_detail() -> None:
    repository = StubMessageTaskRepository()
    service = MessageTaskService(repository)
    task_id = await service.create_task(make_new_task("broken"))

    processed = await MessageDispatcher(
        service, RecordingSender(fail_subjects={"broken"})
    ).run_once()

    assert processed == 1
    assert repository.tasks[task_id].status is DeliveryStatus.FAILED
    assert repository.tasks[task_id].result == b"smtp refused"


@pytest.mark.asyncio
async def test_run_once_respects_batch_size() -> None:
    repository = StubMessageTaskRepository()
    service = MessageTaskService(repository)
    for n in range(5):
        await service.create_task(make_new_task(str(n)))
    sender = RecordingSender()

    processed = await MessageDispatcher(service, sender, batch_size=2).run_once()

    assert processed == 2
    assert len(await service.list_pending(10)) == 3


@pytest.mark.asyncio
async def test_concurrent_dispatchers_deliver_each_task_once(repository) -> None:
    service = MessageTaskService(repository)
    ids = [await service.create_task(make_new_task(str(n))) for n in range(4)]
    sender = RecordingSender()
    dispatchers = [MessageDispatcher(service, sender, batch_size=10) for _ in range(3)]

    results = await asyncio.gather(*(d.run_once() for d in dispatchers))

    assert sum(results) == len(ids)
    assert sorted(sender.sent) == ids
    for task_id in ids:
        task = await service.get_visible_task(task_id)
        assert task.status is DeliveryStatus.SUCCEEDED


@pytest.mark.asyncio
async def test_run_forever_drains_queue_until_cancelled() -> None:
    repository = StubMessageTaskRepository()
    service = MessageTaskService(repository)
    task_id = await service.create_task(make_new_task())
    dispatcher = MessageDispatcher(
        service, LoggingMessageSender(), batch_size=5, poll_interval_seconds=0.01
    )

    runner = asyncio.create_task(dispatcher.run_forever())
    await asyncio.sleep(0.05)
    runner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await runner

    assert repository.tasks[task_id].status is DeliveryStatus.SUCCEEDED
    assert repository.tasks[task_id].result == b"logged"


class DisableAfterListingService(MessageTaskService):
    """Disables a task right after the batch is listed, before it is claimed."""

    def __init__(self, repository, task_id: int) -> None:
        super().__init__(repository)
        self._task_id = task_id

    async def list_pending(self, limit: int) -> list[MessageTask]:
        tasks = await super().list_pending(limit)
        await self.disable_task(self._task_id)
        return tasks


class FlakyRepository(StubMessageTaskRepository):
    """Stub store whose writes or reads fail for selected calls."""

    def __init__(self) -> None:
        super().__init__()
        self.failing_outcomes: set[int] = set()
        self.failing_lists = 0

    async def list_sending_tasks(self, limit, session=None):
        if self.failing_lists:
            self.failing_lists -= 1
            raise StorageError("connection reset")
        return await super().list_sending_tasks(limit, session)

    async def update_task_status(self, task_id, status, result=b"", session=None):
        if status.is_terminal and task_id in self.failing_outcomes:
            raise StorageError("disk full")
        return await super().update_task_status(task_id, status, result, session)


@pytest.mark.asyncio
async def test_task_disabled_after_listing_is_not_delivered(repository) -> None:
    seed = MessageTaskService(repository)
    kept = await seed.create_task(make_new_task("kept"))
    hidden = await seed.create_task(make_new_task("hidden"))
    service = DisableAfterListingService(repository, hidden)
    sender = RecordingSender()

    processed = await MessageDispatcher(service, sender, batch_size=10).run_once()

    assert processed == 1
    assert sender.sent == [kept]
    await service.enable_task(hidden)
    assert (await service.get_visible_task(hidden)).status is DeliveryStatus.PENDING


@pytest.mark.asyncio
async def test_storage_failure_on_one_task_does_not_stop_the_batch() -> None:
    repository = FlakyRepository()
    service = MessageTaskService(repository)
    first = await service.create_task(make_new_task("first"))
    second = await service.create_task(make_new_task("second"))
    repository.failing_outcomes.add(first)
    sender = RecordingSender()

    processed = await MessageDispatcher(service, sender, batch_size=10).run_once()

    assert processed == 1
    assert sender.sent == [first, second]
    assert repository.tasks[first].status is DeliveryStatus.IN_PROGRESS
    assert repository.tasks[second].status is DeliveryStatus.SUCCEEDED


@pytest.mark.asyncio
async def test_run_forever_survives_storage_failures() -> None:
    repository = FlakyRepository()
    repository.failing_lists = 2
    service = MessageTaskService(repository)
    task_id = await service.create_task(make_new_task())
    dispatcher = MessageDispatcher(
        service, RecordingSender(), batch_size=5, poll_interval_seconds=0.01
    )

    runner = asyncio.create_task(dispatcher.run_forever())
    await asyncio.sleep(0.1)
    runner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await runner

    assert repository.failing_lists == 0
    assert repository.tasks[task_id].status is DeliveryStatus.SUCCEEDED
