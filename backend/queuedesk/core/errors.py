"""
Domain error taxonomy.

The engine raises these and never retries them itself. The HTTP layer maps
each class to a status code in `queuedesk.main`.
"""


class QueueError(Exception):
    """Base class for every error surfaced by the queue core."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(QueueError):
    """Referenced counter or ticket is absent, soft-deleted or inactive."""


class CapacityExceeded(QueueError):
    """Counter has issued `max_queue` tickets since its last reset."""

    def __init__(self, counter_id: int, max_queue: int):
        super().__init__(f"Counter {counter_id} queue is full ({max_queue} tickets issued)")
        self.counter_id = counter_id
        self.max_queue = max_queue


class InvalidTransition(QueueError):
    """Requested status change is not permitted from the current status."""

    def __init__(self, current, requested=None, message: str | None = None):
        super().__init__(
            message or f"Invalid ticket status transition: {current.value} -> {requested.value}"
        )
        self.current = current
        self.requested = requested


class ValidationFailed(QueueError):
    """Administrative input that would break a stored invariant."""


class StorageError(QueueError):
    """Transaction or connectivity failure. The only class worth retrying."""
