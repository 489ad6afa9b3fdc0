from newsdesk.platform.worker.config import WorkerConfig
from newsdesk.platform.worker.delivery import (
    ExecutionOutcome,
    drain_queue,
    run_delivery_worker,
    try_execute_task,
)
from newsdesk.platform.worker.expiration import delete_expired, run_expiration_sweeper

__all__ = [
    "ExecutionOutcome",
    "WorkerConfig",
    "delete_expired",
    "drain_queue",
    "run_delivery_worker",
    "run_expiration_sweeper",
    "try_execute_task",
]
