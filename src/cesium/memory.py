"""Memory aggregation: system summary and per-process usage."""

from cesium.models import (
    MemoryCounters,
    ProcessMemory,
    ProcessPrivateMemory,
    SystemMemorySummary,
)

KB_PER_GB = 1024**2
KB_PER_MB = 1024
BYTES_PER_GB = 1024**3
BYTES_PER_MB = 1024**2

DEFAULT_FLOOR_MB = 0.1


def summarize_system_memory(counters: MemoryCounters) -> SystemMemorySummary:
    """
    Scale raw memory counters to GB/MB for display.

    Missing counters count as zero. Used memory is derived from the rounded
    total and free values so that used + free == total.
    """
    total_kb = counters.total_kb or 0
    free_kb = counters.free_kb or 0

    total_gb = round(total_kb / KB_PER_GB, 2)
    free_gb = round(free_kb / KB_PER_GB, 2)
    used_gb = round(total_gb - free_gb, 2)
    used_percent = round(used_gb / total_gb * 100, 2) if total_gb > 0 else 0.0

    return SystemMemorySummary(
        total_gb=total_gb,
        used_gb=used_gb,
        free_gb=free_gb,
        used_percent=used_percent,
        committed_gb=round((counters.committed_bytes or 0) / BYTES_PER_GB, 2),
        commit_limit_gb=round((counters.commit_limit_bytes or 0) / BYTES_PER_GB, 2),
        cache_gb=round((counters.cache_bytes or 0) / BYTES_PER_GB, 2),
        compressed_mb=round((counters.compressed_bytes or 0) / BYTES_PER_MB, 2),
    )


def total_ram_mb(counters: MemoryCounters) -> float:
    """Total physical memory in MB, or 0.0 if unknown."""
    return (counters.total_kb or 0) / KB_PER_MB


def process_memory(
    sample: ProcessPrivateMemory,
    total_mb: float,
    floor_mb: float = DEFAULT_FLOOR_MB,
) -> ProcessMemory | None:
    """Convert a process's private bytes to MB and percent of total RAM.

    Returns None for processes under floor_mb.
    """
    usage_mb = sample.private_bytes / BYTES_PER_MB
    if usage_mb < floor_mb:
        return None

    usage_percent = usage_mb / total_mb * 100 if total_mb > 0 else 0.0
    return ProcessMemory(
        pid=sample.pid,
        name=sample.name,
        usage_mb=usage_mb,
        usage_percent=usage_percent,
    )
