"""Sampling engine: turns raw counters into one Snapshot per tick."""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

import structlog

from cesium.config import Config, RankingConfig
from cesium.cpu import CoreLoadTracker, process_cpu_percent
from cesium.memory import process_memory, summarize_system_memory, total_ram_mb
from cesium.models import (
    HardwareInfo,
    MemoryCounters,
    ProcessMemory,
    ProcessUsage,
    Snapshot,
)
from cesium.provider import CounterProvider
from cesium.ranking import top_n
from cesium.state import SampleStateStore

log = structlog.get_logger()

T = TypeVar("T")


@dataclass(slots=True)
class EngineState:
    """Everything that carries over from one tick to the next."""

    store: SampleStateStore
    cores: CoreLoadTracker
    logical_cores: int
    total_ram_mb: float


def _soft(section: str, query: Callable[[], T], default: T) -> T:
    """Run a provider query, substituting default if the section is unavailable."""
    try:
        return query()
    except Exception as e:
        log.warning("provider_unavailable", section=section, error=str(e))
        return default


def run_tick(
    provider: CounterProvider,
    state: EngineState,
    now_ms: float,
    settings: RankingConfig,
) -> tuple[EngineState, Snapshot]:
    """
    Run one sampling tick.

    Queries every counter section, computes CPU deltas against the state
    store, ranks processes and assembles the Snapshot. A failed section
    degrades to zero/empty values, it never aborts the tick.

    Args:
        provider: Source of raw counters.
        state: State from the previous tick, updated in place.
        now_ms: Current time in milliseconds on the same clock as the store.
        settings: Ranking cutoffs and the memory floor.

    Returns:
        The updated state and the new snapshot.
    """
    # now_ms must be read right before this enumeration
    cpu_times = _soft("process_cpu", provider.process_cpu_times, [])
    overall_cpu = _soft("overall_cpu", provider.overall_cpu_load, 0)
    core_loads = _soft("per_core", provider.per_core_loads, {})
    memory_samples = _soft("process_memory", provider.process_memory, [])
    counters = _soft("system_memory", provider.system_memory_counters, MemoryCounters())
    uptime = _soft("uptime", provider.uptime, 0.0)

    state.cores.apply(core_loads)

    # One elapsed value for every delta in this tick
    store = state.store
    elapsed_ms = store.begin_tick(now_ms)
    usages: list[ProcessUsage] = []
    for sample in cpu_times:
        previous = store.record_and_diff(sample.pid, sample.cpu_time_ms)
        percent = process_cpu_percent(
            sample.cpu_time_ms, previous, elapsed_ms, state.logical_cores
        )
        if percent is None or percent <= 0:
            continue
        usages.append(ProcessUsage(pid=sample.pid, name=sample.name, cpu_percent=percent))
    evicted = store.end_tick()

    memories: list[ProcessMemory] = []
    for sample in memory_samples:
        usage = process_memory(sample, state.total_ram_mb, settings.memory_floor_mb)
        if usage is not None:
            memories.append(usage)

    snapshot = Snapshot(
        overall_cpu=overall_cpu,
        cores=state.cores.samples(),
        top_cpu=tuple(top_n(usages, settings.cpu_top_n, key=lambda p: p.cpu_percent)),
        top_memory=tuple(top_n(memories, settings.memory_top_n, key=lambda p: p.usage_mb)),
        memory=summarize_system_memory(counters),
        uptime_seconds=uptime,
    )

    log.debug(
        "tick_complete",
        elapsed_ms=round(elapsed_ms, 1),
        processes=len(cpu_times),
        tracked=len(store),
        evicted=evicted,
    )
    return state, snapshot


class SamplingEngine:
    """
    Owns the provider and the cross-tick state.

    Logical core count, total RAM and hardware metadata are read once here
    and treated as constants afterwards. tick() holds a lock for the whole
    tick, so two ticks never touch the state store at the same time.
    """

    def __init__(
        self,
        provider: CounterProvider,
        config: Config | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize the SamplingEngine.

        Args:
            provider: Source of raw counters.
            config: Application config, defaults if not provided.
            clock: Monotonic time source in seconds.
        """
        self._provider = provider
        self._config = config or Config()
        self._clock = clock
        self._lock = threading.Lock()

        logical_cores = _soft("logical_cores", provider.logical_core_count, 1) or 1
        counters = _soft("system_memory", provider.system_memory_counters, MemoryCounters())
        core_keys = _soft("per_core", provider.per_core_loads, {}).keys()
        modules, slots = _soft("memory_modules", provider.memory_modules, ((), 0))
        cache_sizes = _soft("cpu_cache", provider.cpu_cache_sizes, {})

        self._state = EngineState(
            store=SampleStateStore(started_at_ms=self._now_ms()),
            cores=CoreLoadTracker(core_keys),
            logical_cores=logical_cores,
            total_ram_mb=total_ram_mb(counters),
        )
        self._hardware = HardwareInfo(
            logical_core_count=logical_cores,
            total_ram_mb=self._state.total_ram_mb,
            memory_modules=tuple(modules),
            memory_slots=slots,
            cpu_cache_kb=tuple(sorted(cache_sizes.items())),
        )

        log.info(
            "engine_started",
            logical_cores=logical_cores,
            total_ram_mb=round(self._state.total_ram_mb, 1),
            cores=len(self._state.cores),
        )

    @property
    def hardware(self) -> HardwareInfo:
        """Hardware metadata captured at start."""
        return self._hardware

    @property
    def state(self) -> EngineState:
        return self._state

    def _now_ms(self) -> float:
        return self._clock() * 1000.0

    def tick(self) -> Snapshot:
        """Run one tick and return its snapshot."""
        with self._lock:
            self._state, snapshot = run_tick(
                self._provider,
                self._state,
                self._now_ms(),
                self._config.ranking,
            )
        return snapshot
