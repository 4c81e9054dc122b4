from enum import IntEnum


class TaskVisibility(IntEnum):
    DISABLED = 0
    ENABLED = 1
