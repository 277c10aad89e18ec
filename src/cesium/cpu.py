"""CPU usage derived from cumulative counters, plus per-core load tracking."""

import math
from collections.abc import Iterable, Mapping

from cesium.models import CoreSample
from cesium.provider import TOTAL_CORE_KEY


def process_cpu_percent(
    current_ms: float,
    previous_ms: float | None,
    elapsed_ms: float,
    logical_cores: int,
) -> int | None:
    """
    Convert a cumulative CPU time delta into a usage percentage.

    Args:
        current_ms: Cumulative CPU time observed this tick.
        previous_ms: Cumulative CPU time from the previous tick, None if the
            process was not seen before.
        elapsed_ms: Wall-clock time since the previous tick.
        logical_cores: Number of logical cores to normalize by.

    Returns:
        None for a first sighting, otherwise
        floor(delta / elapsed * 100 / cores). The result is not clamped to
        100 and may be zero or negative; callers drop those.
    """
    if previous_ms is None:
        return None
    if elapsed_ms <= 0 or logical_cores <= 0:
        return 0

    delta_ms = current_ms - previous_ms
    return math.floor(delta_ms / elapsed_ms * 100 / logical_cores)


class CoreLoadTracker:
    """
    Latest known utilization for each logical core.

    Values come straight from the provider, no delta is taken. A core missing
    from a provider response keeps its previous value.
    """

    def __init__(self, initial_keys: Iterable[str] = ()) -> None:
        self._loads: dict[str, int] = {}
        for key in initial_keys:
            if key and key != TOTAL_CORE_KEY:
                self._loads[key] = 0

    def apply(self, loads: Mapping[str, int]) -> None:
        for key, load in loads.items():
            if not key or key == TOTAL_CORE_KEY:
                continue
            self._loads[key] = load

    def samples(self) -> tuple[CoreSample, ...]:
        return tuple(CoreSample(key=key, usage=usage) for key, usage in self._loads.items())

    def __len__(self) -> int:
        return len(self._loads)
