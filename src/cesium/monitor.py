"""Background sampling thread for cesium."""

import threading
import time
from queue import Queue

import structlog

from cesium.engine import SamplingEngine
from cesium.models import Snapshot

log = structlog.get_logger()


class SystemMonitor:
    """
    Runs engine ticks on a daemon thread and pushes snapshots to a Queue.

    A single thread runs every tick, so ticks never overlap. A tick that
    overruns the poll rate delays the next one, which then starts right away.
    """

    def __init__(
        self,
        engine: SamplingEngine,
        update_queue: Queue[Snapshot],
        poll_rate: float = 1.0,
    ) -> None:
        """
        Initialize the SystemMonitor.

        Args:
            engine: Engine that produces one snapshot per tick.
            update_queue: Thread-safe queue to push snapshots to.
            poll_rate: Seconds between tick starts. Default 1.0s.
        """
        self._engine = engine
        self._queue = update_queue
        self._poll_rate = max(0.1, poll_rate)
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def poll_rate(self) -> float:
        """Get the current poll rate."""
        return self._poll_rate

    @poll_rate.setter
    def poll_rate(self, value: float) -> None:
        """Set the poll rate."""
        self._poll_rate = max(0.1, value)  # Minimum 0.1 seconds

    @property
    def engine(self) -> SamplingEngine:
        return self._engine

    @property
    def is_running(self) -> bool:
        """Check if the monitor thread is running."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the monitoring thread."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._poll_loop,
            daemon=True,
            name="SystemMonitor",
        )
        self._thread.start()
        log.info("monitor_started", poll_rate=self._poll_rate)

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Stop the monitoring thread.

        Args:
            timeout: How long to wait for thread to stop (seconds).
        """
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
            log.info("monitor_stopped")

    def _poll_loop(self) -> None:
        """Main polling loop running in the background thread."""
        while not self._stop_event.is_set():
            started = time.monotonic()
            try:
                self._queue.put(self._engine.tick())
            except Exception:
                # Keep the loop alive, the next tick may succeed
                log.exception("tick_failed")

            took = time.monotonic() - started
            self._stop_event.wait(timeout=max(0.0, self._poll_rate - took))
