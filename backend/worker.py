"""Entry point for the background run poller process."""

from __future__ import annotations

import logging
import signal
import threading

from potaflow import build_poller, create_app


def main() -> None:
    app = create_app()
    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    stop_event = threading.Event()

    def _request_stop(signum: int, _frame: object) -> None:
        app.logger.info("received signal %s, stopping", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _request_stop)
    signal.signal(signal.SIGTERM, _request_stop)

    poller = build_poller(app)
    app.logger.info("worker started")
    with app.app_context():
        poller.run(stop_event)
    app.logger.info("worker stopped")


if __name__ == "__main__":  # pragma: no cover - manual runtime entrypoint
    main()
