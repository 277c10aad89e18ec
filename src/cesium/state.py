"""Per-process CPU time carried between ticks."""

from collections.abc import Iterator


class SampleStateStore:
    """
    Previous tick's cumulative CPU time per pid, plus the previous tick time.

    The map is rebuilt every tick: only pids recorded between begin_tick()
    and end_tick() survive, so a dead process never leaves an entry behind
    for a later process that reuses its pid.
    """

    def __init__(self, started_at_ms: float) -> None:
        self._last_sample_ms = started_at_ms
        self._previous: dict[int, float] = {}
        self._current: dict[int, float] = {}

    @property
    def last_sample_ms(self) -> float:
        return self._last_sample_ms

    def begin_tick(self, now_ms: float) -> float:
        """
        Start a tick and return the elapsed milliseconds since the last one.

        The elapsed time is measured once here and shared by every process
        delta computed in the same tick.
        """
        elapsed_ms = now_ms - self._last_sample_ms
        self._last_sample_ms = now_ms
        self._current = {}
        return elapsed_ms

    def record_and_diff(self, pid: int, cpu_time_ms: float) -> float | None:
        """Record the current CPU time for pid and return the previous one, if any."""
        previous = self._previous.get(pid)
        self._current[pid] = cpu_time_ms
        return previous

    def end_tick(self) -> int:
        """Drop every pid not recorded this tick. Returns how many were evicted."""
        evicted = len(self._previous.keys() - self._current.keys())
        self._previous = self._current
        self._current = {}
        return evicted

    def __len__(self) -> int:
        return len(self._previous)

    def __contains__(self, pid: object) -> bool:
        return pid in self._previous

    def __iter__(self) -> Iterator[int]:
        return iter(self._previous)
