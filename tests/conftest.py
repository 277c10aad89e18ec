"""Shared fixtures for cesium tests."""

import pytest

from cesium.models import (
    MemoryCounters,
    MemoryModule,
    ProcessCpuTime,
    ProcessPrivateMemory,
)


class FakeProvider:
    """In-memory CounterProvider whose counters tests set between ticks."""

    def __init__(self) -> None:
        self.overall = 25
        self.cores: dict[str, int] = {"0": 10, "1": 20, "2": 30, "3": 40}
        self.cpu_times: list[ProcessCpuTime] = []
        self.memory: list[ProcessPrivateMemory] = []
        self.counters = MemoryCounters(
            total_kb=16 * 1024 * 1024,
            free_kb=8 * 1024 * 1024,
            committed_bytes=10 * 1024**3,
            commit_limit_bytes=20 * 1024**3,
            cache_bytes=2 * 1024**3,
            compressed_bytes=512 * 1024**2,
        )
        self.cores_count = 4
        self.boot_uptime = 3600.0
        self.modules: tuple[MemoryModule, ...] = (
            MemoryModule(capacity_bytes=8 * 1024**3, speed_mhz=3200, form_factor="DIMM"),
        )
        self.slots = 2
        self.caches = {1: 64, 2: 512, 3: 8192}
        # Section name -> exception raised by that query
        self.failures: dict[str, Exception] = {}

    def _check(self, section: str) -> None:
        if section in self.failures:
            raise self.failures[section]

    def set_cpu_times(self, *entries: tuple[int, str, float]) -> None:
        self.cpu_times = [ProcessCpuTime(pid, name, ms) for pid, name, ms in entries]

    def set_memory(self, *entries: tuple[int, str, int]) -> None:
        self.memory = [ProcessPrivateMemory(pid, name, size) for pid, name, size in entries]

    def overall_cpu_load(self) -> int:
        self._check("overall_cpu")
        return self.overall

    def per_core_loads(self) -> dict[str, int]:
        self._check("per_core")
        return dict(self.cores)

    def process_cpu_times(self) -> list[ProcessCpuTime]:
        self._check("process_cpu")
        return list(self.cpu_times)

    def process_memory(self) -> list[ProcessPrivateMemory]:
        self._check("process_memory")
        return list(self.memory)

    def system_memory_counters(self) -> MemoryCounters:
        self._check("system_memory")
        return self.counters

    def uptime(self) -> float:
        self._check("uptime")
        return self.boot_uptime

    def logical_core_count(self) -> int:
        return self.cores_count

    def memory_modules(self) -> tuple[tuple[MemoryModule, ...], int]:
        self._check("memory_modules")
        return self.modules, self.slots

    def cpu_cache_sizes(self) -> dict[int, int]:
        self._check("cpu_cache")
        return dict(self.caches)


class FakeClock:
    """Manually advanced clock in seconds."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
