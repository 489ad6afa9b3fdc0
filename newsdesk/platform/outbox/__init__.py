"""Issue delivery outbox models and helpers."""

from newsdesk.platform.outbox.models import IssueDeliveryTask
from newsdesk.platform.outbox.services import (
    count_pending,
    delete_task,
    dequeue_task,
    enqueue_delivery_tasks,
)

__all__ = [
    "IssueDeliveryTask",
    "enqueue_delivery_tasks",
    "dequeue_task",
    "delete_task",
    "count_pending",
]
