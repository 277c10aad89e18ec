"""Tests for the CPU calculator and per-core tracker."""

from cesium.cpu import CoreLoadTracker, process_cpu_percent


class TestProcessCpuPercent:
    """Tests for process_cpu_percent."""

    def test_normalizes_by_core_count(self):
        """500ms of CPU over 1000ms on 4 cores is 12%."""
        assert process_cpu_percent(1500.0, 1000.0, 1000.0, 4) == 12

    def test_first_sighting_returns_none(self):
        """No previous value means no rate."""
        assert process_cpu_percent(1500.0, None, 1000.0, 4) is None

    def test_zero_elapsed_returns_zero(self):
        """A zero interval short-circuits instead of dividing by zero."""
        assert process_cpu_percent(1500.0, 1000.0, 0.0, 4) == 0
        assert process_cpu_percent(1500.0, 1000.0, -5.0, 4) == 0

    def test_zero_cores_returns_zero(self):
        """A zero core count short-circuits."""
        assert process_cpu_percent(1500.0, 1000.0, 1000.0, 0) == 0

    def test_result_is_floored(self):
        """Fractions are floored."""
        # 399ms / 1000ms * 100 / 4 = 9.975
        assert process_cpu_percent(1399.0, 1000.0, 1000.0, 4) == 9

    def test_idle_process_is_zero(self):
        """No CPU time consumed gives 0."""
        assert process_cpu_percent(1000.0, 1000.0, 1000.0, 4) == 0

    def test_negative_delta_is_negative(self):
        """A counter that went backwards yields a non-positive value."""
        assert process_cpu_percent(900.0, 1000.0, 1000.0, 4) <= 0

    def test_not_clamped_to_100(self):
        """Short intervals may exceed 100% and are passed through."""
        assert process_cpu_percent(3000.0, 1000.0, 100.0, 1) == 2000


class TestCoreLoadTracker:
    """Tests for CoreLoadTracker."""

    def test_initial_keys_start_at_zero(self):
        """Cores enumerated at start report 0 until a value arrives."""
        tracker = CoreLoadTracker(["0", "1"])
        samples = tracker.samples()

        assert [s.key for s in samples] == ["0", "1"]
        assert all(s.usage == 0 for s in samples)

    def test_apply_copies_values(self):
        """Provider values are copied as-is."""
        tracker = CoreLoadTracker(["0", "1"])
        tracker.apply({"0": 30, "1": 70})

        assert {s.key: s.usage for s in tracker.samples()} == {"0": 30, "1": 70}

    def test_missing_core_keeps_previous_value(self):
        """A core absent from the response retains its last value."""
        tracker = CoreLoadTracker(["Core0", "Core1"])
        tracker.apply({"Core0": 30, "Core1": 50})
        tracker.apply({"Core1": 55})

        assert {s.key: s.usage for s in tracker.samples()} == {"Core0": 30, "Core1": 55}

    def test_total_key_is_ignored(self):
        """The _Total aggregate is never tracked as a core."""
        tracker = CoreLoadTracker(["_Total", "0"])
        tracker.apply({"_Total": 90, "0": 10})

        assert [s.key for s in tracker.samples()] == ["0"]

    def test_new_key_is_appended(self):
        """A core first seen later is added after the known ones."""
        tracker = CoreLoadTracker(["0"])
        tracker.apply({"1": 20, "0": 5})

        assert [s.key for s in tracker.samples()] == ["0", "1"]
        assert len(tracker) == 2
