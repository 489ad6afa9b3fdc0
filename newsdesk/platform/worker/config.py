"""Configuration helpers for the background workers."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta


@dataclass
class WorkerConfig:
    """Runtime knobs for the delivery and expiration loops."""

    delivery_workers: int
    empty_queue_sleep: float
    error_sleep: float
    sweep_interval: float
    idempotency_ttl_hours: float

    @property
    def idempotency_ttl(self) -> timedelta:
        return timedelta(hours=self.idempotency_ttl_hours)

    @classmethod
    def from_env(cls) -> "WorkerConfig":
        """Build config from environment with sensible defaults."""
        return cls(
            delivery_workers=int(os.environ.get("DELIVERY_WORKERS", "1")),
            empty_queue_sleep=float(os.environ.get("DELIVERY_EMPTY_QUEUE_SLEEP", "10")),
            error_sleep=float(os.environ.get("DELIVERY_ERROR_SLEEP", "1")),
            sweep_interval=float(os.environ.get("EXPIRATION_SWEEP_INTERVAL", "120")),
            idempotency_ttl_hours=float(os.environ.get("IDEMPOTENCY_TTL_HOURS", "24")),
        )
