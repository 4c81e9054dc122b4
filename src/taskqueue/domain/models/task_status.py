from enum import IntEnum


class DeliveryStatus(IntEnum):
    """Delivery progress of a message task. Values match the stored column."""

    PENDING = 0
    IN_PROGRESS = 1
    SUCCEEDED = 2
    FAILED = 3

    @property
    def is_terminal(self) -> bool:
        return self in (DeliveryStatus.SUCCEEDED, DeliveryStatus.FAILED)

    def allowed_sources(self) -> tuple["DeliveryStatus", ...]:
        """Statuses a task may currently hold for a transition into ``self``."""
        if self is DeliveryStatus.IN_PROGRESS:
            return (DeliveryStatus.PENDING,)
        if self.is_terminal:
            return (DeliveryStatus.PENDING, DeliveryStatus.IN_PROGRESS)
        return ()
