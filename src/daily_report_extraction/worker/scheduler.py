"""Recurring poll timer for the queue consumer."""

from __future__ import annotations

import logging
import threading

from daily_report_extraction.worker.consumer import QueueConsumer, TickOutcome

logger = logging.getLogger(__name__)


class PollScheduler:
    """Fires ``consumer.tick`` every interval, each on its own thread.

    A slow job does not delay the timer; overlapping ticks are rejected by
    the consumer's guard.
    """

    def __init__(self, consumer: QueueConsumer, *, interval_seconds: float) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0.")
        self.consumer = consumer
        self.interval_seconds = interval_seconds
        self._stop = threading.Event()
        self._timer: threading.Thread | None = None
        self._ticks: list[threading.Thread] = []
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._timer is not None and self._timer.is_alive()

    def start(self) -> None:
        if self.running:
            raise RuntimeError("Poll scheduler is already running.")
        self._stop.clear()
        self._timer = threading.Thread(
            target=self._run,
            name="daily-report-poll-timer",
            daemon=True,
        )
        self._timer.start()
        logger.info("Polling queue every %.1fs", self.interval_seconds)

    def stop(self, *, timeout: float | None = None) -> None:
        """Stop the timer and wait for in-flight ticks."""

        self._stop.set()
        if self._timer is not None:
            self._timer.join(timeout)
            self._timer = None
        with self._lock:
            ticks = list(self._ticks)
        for thread in ticks:
            thread.join(timeout)
        logger.info("Poll scheduler stopped")

    def _run(self) -> None:
        while not self._stop.is_set():
            self._dispatch()
            self._stop.wait(self.interval_seconds)

    def _dispatch(self) -> None:
        thread = threading.Thread(target=self._tick, name="daily-report-poll-tick", daemon=True)
        with self._lock:
            self._ticks = [tick for tick in self._ticks if tick.is_alive()]
            self._ticks.append(thread)
        thread.start()

    def _tick(self) -> None:
        try:
            outcome = self.consumer.tick()
        except Exception:  # noqa: BLE001
            logger.exception("Poll tick failed")
            return
        if outcome is not TickOutcome.IDLE_POLL:
            logger.debug("Poll tick outcome: %s", outcome.value)
