"""CLI entrypoint to run the delivery workers and the idempotency sweeper."""

from __future__ import annotations

import logging
import os
import threading

from newsdesk import create_app
from newsdesk.platform.worker.config import WorkerConfig
from newsdesk.platform.worker.delivery import run_delivery_worker
from newsdesk.platform.worker.expiration import run_expiration_sweeper

logger = logging.getLogger(__name__)


def start_workers(app, config: WorkerConfig, stop_event: threading.Event) -> list[threading.Thread]:
    """Start the delivery loops and the sweeper, each on its own thread and session."""
    threads = [
        threading.Thread(
            target=run_delivery_worker,
            kwargs={"app": app, "config": config, "stop_event": stop_event},
            name=f"delivery-{index}",
            daemon=True,
        )
        for index in range(max(config.delivery_workers, 1))
    ]
    threads.append(
        threading.Thread(
            target=run_expiration_sweeper,
            kwargs={"app": app, "config": config, "stop_event": stop_event},
            name="idempotency-sweeper",
            daemon=True,
        )
    )
    for thread in threads:
        thread.start()
    return threads


def main() -> None:
    logging.basicConfig(
        level=os.environ.get("WORKER_LOGLEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s",
    )
    env = os.environ.get("APP_ENV", "development")
    app = create_app(env)
    config = WorkerConfig.from_env()
    stop_event = threading.Event()
    threads = start_workers(app, config, stop_event)
    try:
        while any(thread.is_alive() for thread in threads):
            for thread in threads:
                thread.join(timeout=1.0)
    except KeyboardInterrupt:
        logger.info("Worker interrupted; stopping")
        stop_event.set()
        for thread in threads:
            thread.join(timeout=5.0)


if __name__ == "__main__":
    main()
