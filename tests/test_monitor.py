"""Tests for the SystemMonitor class."""

from queue import Queue

from cesium.engine import SamplingEngine
from cesium.models import Snapshot
from cesium.monitor import SystemMonitor


class TestSystemMonitor:
    """Tests for SystemMonitor class."""

    def test_monitor_creation(self, provider):
        """Test SystemMonitor can be instantiated."""
        queue: Queue[Snapshot] = Queue()
        monitor = SystemMonitor(SamplingEngine(provider), queue)

        assert monitor.poll_rate == 1.0
        assert not monitor.is_running

    def test_poll_rate_minimum(self, provider):
        """Test poll rate has a minimum value."""
        queue: Queue[Snapshot] = Queue()
        monitor = SystemMonitor(SamplingEngine(provider), queue, poll_rate=0.0)
        assert monitor.poll_rate == 0.1

        monitor.poll_rate = 0.01  # Very small value
        assert monitor.poll_rate >= 0.1  # Should be clamped to minimum

    def test_monitor_start_stop(self, provider):
        """Test SystemMonitor can be started and stopped."""
        queue: Queue[Snapshot] = Queue()
        monitor = SystemMonitor(SamplingEngine(provider), queue, poll_rate=0.1)

        monitor.start()
        assert monitor.is_running

        monitor.stop()
        assert not monitor.is_running

    def test_monitor_start_idempotent(self, provider):
        """Test starting an already running monitor is safe."""
        queue: Queue[Snapshot] = Queue()
        monitor = SystemMonitor(SamplingEngine(provider), queue, poll_rate=0.1)

        monitor.start()
        thread1 = monitor._thread

        monitor.start()  # Should not create a new thread
        thread2 = monitor._thread

        assert thread1 is thread2
        monitor.stop()

    def test_monitor_pushes_snapshots(self, provider):
        """Test SystemMonitor ticks and queues snapshots."""
        queue: Queue[Snapshot] = Queue()
        monitor = SystemMonitor(SamplingEngine(provider), queue, poll_rate=0.1)

        monitor.start()
        try:
            snapshot1 = queue.get(timeout=2.0)
            snapshot2 = queue.get(timeout=2.0)

            assert isinstance(snapshot1, Snapshot)
            assert snapshot2.overall_cpu == 25
        finally:
            monitor.stop()

    def test_monitor_survives_failing_ticks(self, provider):
        """Test the loop keeps running when a tick raises."""
        queue: Queue[Snapshot] = Queue()
        engine = SamplingEngine(provider)
        calls = 0
        original_tick = engine.tick

        def flaky_tick() -> Snapshot:
            nonlocal calls
            calls += 1
            if calls == 1:
                raise RuntimeError("boom")
            return original_tick()

        engine.tick = flaky_tick  # type: ignore[method-assign]
        monitor = SystemMonitor(engine, queue, poll_rate=0.1)

        monitor.start()
        try:
            assert isinstance(queue.get(timeout=2.0), Snapshot)
            assert calls >= 2
        finally:
            monitor.stop()

    def test_daemon_thread(self, provider):
        """Test monitor thread is a daemon thread."""
        queue: Queue[Snapshot] = Queue()
        monitor = SystemMonitor(SamplingEngine(provider), queue, poll_rate=0.1)

        monitor.start()
        try:
            assert monitor._thread is not None
            assert monitor._thread.daemon is True
            assert monitor._thread.name == "SystemMonitor"
        finally:
            monitor.stop()
