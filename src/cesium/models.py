"""Data models for cesium."""

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class CoreSample:
    """Instantaneous utilization of one logical core."""

    key: str  # Stable across ticks, e.g. "0", "1"
    usage: int  # 0 - 100

    @property
    def display_name(self) -> str:
        return f"Core {self.key}"


@dataclass(slots=True, frozen=True)
class ProcessCpuTime:
    """Raw cumulative CPU time reported for a process."""

    pid: int
    name: str
    cpu_time_ms: float  # user + system, since process start


@dataclass(slots=True, frozen=True)
class ProcessPrivateMemory:
    """Raw private memory reported for a process."""

    pid: int
    name: str
    private_bytes: int


@dataclass(slots=True, frozen=True)
class MemoryCounters:
    """Raw system memory counters. Any counter may be missing (None)."""

    total_kb: int | None = None
    free_kb: int | None = None
    committed_bytes: int | None = None
    commit_limit_bytes: int | None = None
    cache_bytes: int | None = None
    compressed_bytes: int | None = None


@dataclass(slots=True, frozen=True)
class ProcessUsage:
    """CPU usage of a process over the last tick."""

    pid: int
    name: str
    cpu_percent: int  # normalized by logical core count, not clamped

    @property
    def display_name(self) -> str:
        return f"{self.name} (PID:{self.pid})"


@dataclass(slots=True, frozen=True)
class ProcessMemory:
    """Private memory of a process."""

    pid: int
    name: str
    usage_mb: float
    usage_percent: float  # of total system RAM

    @property
    def display_name(self) -> str:
        return f"{self.name} (PID: {self.pid})"


@dataclass(slots=True, frozen=True)
class SystemMemorySummary:
    """Physical memory and commit charge, scaled for display."""

    total_gb: float
    used_gb: float
    free_gb: float
    used_percent: float
    committed_gb: float
    commit_limit_gb: float
    cache_gb: float
    compressed_mb: float

    @classmethod
    def empty(cls) -> "SystemMemorySummary":
        return cls(0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0)


@dataclass(slots=True, frozen=True)
class MemoryModule:
    """One installed physical memory module."""

    capacity_bytes: int
    speed_mhz: int = 0
    form_factor: str = "Unknown"

    @property
    def capacity_gb(self) -> float:
        return self.capacity_bytes / 1024**3


@dataclass(slots=True, frozen=True)
class HardwareInfo:
    """Static hardware description captured once when the engine starts."""

    logical_core_count: int
    total_ram_mb: float
    memory_modules: tuple[MemoryModule, ...] = ()
    memory_slots: int = 0
    cpu_cache_kb: tuple[tuple[int, int], ...] = ()  # (level, size KB) pairs


@dataclass(slots=True, frozen=True)
class Snapshot:
    """
    Immutable result of one tick.

    Handed to the presentation layer exactly once. Collections are tuples so
    the consumer cannot mutate them.
    """

    overall_cpu: int
    cores: tuple[CoreSample, ...]
    top_cpu: tuple[ProcessUsage, ...]
    top_memory: tuple[ProcessMemory, ...]
    memory: SystemMemorySummary
    uptime_seconds: float
