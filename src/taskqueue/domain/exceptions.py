class MessageQueueError(Exception):
    """Base class for every error raised by the message task queue."""


class InvalidArgumentError(MessageQueueError):
    """Raised when a caller passes an identifier or status the queue cannot accept."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class StorageError(MessageQueueError):
    """Raised when the backing store fails to read or persist a task."""


class TaskNotFoundError(StorageError):
    """Raised when a task identifier does not exist in the task store."""

    def __init__(self, task_id: int) -> None:
        super().__init__(f"Message task with id '{task_id}' was not found.")
        self.task_id = task_id
