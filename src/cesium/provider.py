"""Raw OS counter providers for the sampling engine."""

import struct
import time
from pathlib import Path
from typing import Protocol

import psutil

from cesium.models import (
    MemoryCounters,
    MemoryModule,
    ProcessCpuTime,
    ProcessPrivateMemory,
)

TOTAL_CORE_KEY = "_Total"

_MEMINFO_PATH = Path("/proc/meminfo")
_CPU_CACHE_DIR = Path("/sys/devices/system/cpu/cpu0/cache")
_DMI_ENTRIES_DIR = Path("/sys/firmware/dmi/entries")

_SMBIOS_MEMORY_DEVICE = 17
_FORM_FACTORS = {0x02: "Unknown", 0x09: "DIMM", 0x0D: "SODIMM"}

# Errors that mean "this one process is gone or off-limits", never fatal
_PROCESS_ERRORS = (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess)


class CounterProvider(Protocol):
    """Source of raw OS counters queried by the engine once per tick."""

    def overall_cpu_load(self) -> int: ...

    def per_core_loads(self) -> dict[str, int]: ...

    def process_cpu_times(self) -> list[ProcessCpuTime]: ...

    def process_memory(self) -> list[ProcessPrivateMemory]: ...

    def system_memory_counters(self) -> MemoryCounters: ...

    def uptime(self) -> float: ...

    def logical_core_count(self) -> int: ...

    def memory_modules(self) -> tuple[tuple[MemoryModule, ...], int]: ...

    def cpu_cache_sizes(self) -> dict[int, int]: ...


def read_meminfo(path: Path = _MEMINFO_PATH) -> dict[str, int]:
    """
    Parse /proc/meminfo into a mapping of field name to kilobytes.

    Returns an empty dict where the file does not exist (non-Linux hosts).
    """
    try:
        text = path.read_text()
    except OSError:
        return {}

    fields: dict[str, int] = {}
    for line in text.splitlines():
        name, _, rest = line.partition(":")
        parts = rest.split()
        if not parts:
            continue
        try:
            fields[name.strip()] = int(parts[0])
        except ValueError:
            continue
    return fields


def parse_cache_size(text: str) -> int:
    """Convert a sysfs cache size such as '32K' or '8M' to kilobytes."""
    text = text.strip().upper()
    if text.endswith("K"):
        return int(text[:-1])
    if text.endswith("M"):
        return int(text[:-1]) * 1024
    return int(text) // 1024


def read_cpu_cache_sizes(cache_dir: Path = _CPU_CACHE_DIR) -> dict[int, int]:
    """Sum the cache sizes of the first CPU per level (level -> KB)."""
    sizes: dict[int, int] = {}
    if not cache_dir.is_dir():
        return sizes

    for index in sorted(cache_dir.glob("index*")):
        try:
            level = int((index / "level").read_text())
            size_kb = parse_cache_size((index / "size").read_text())
        except (OSError, ValueError):
            continue
        sizes[level] = sizes.get(level, 0) + size_kb
    return sizes


def _memory_device_size(record: bytes) -> int | None:
    """Installed size of an SMBIOS memory device in bytes, None when empty."""
    (size,) = struct.unpack_from("<H", record, 0x0C)
    if size in (0, 0xFFFF):
        return None
    if size == 0x7FFF and len(record) >= 0x20:
        (extended_mb,) = struct.unpack_from("<I", record, 0x1C)
        return (extended_mb & 0x7FFFFFFF) * 1024 * 1024
    if size & 0x8000:
        return (size & 0x7FFF) * 1024
    return size * 1024 * 1024


def parse_memory_device(record: bytes) -> MemoryModule | None:
    """
    Decode one SMBIOS type 17 (Memory Device) structure.

    Returns None for an empty slot. Speed is 0 where the record predates
    SMBIOS 2.3 or the firmware leaves it unknown.
    """
    if len(record) < 0x0F or record[0] != _SMBIOS_MEMORY_DEVICE:
        raise ValueError("not an SMBIOS memory device record")

    capacity = _memory_device_size(record)
    if capacity is None:
        return None

    speed = 0
    if len(record) >= 0x17:
        (speed,) = struct.unpack_from("<H", record, 0x15)
        if speed == 0xFFFF:
            speed = 0
            if len(record) >= 0x58:
                (speed,) = struct.unpack_from("<I", record, 0x54)

    form_factor = _FORM_FACTORS.get(record[0x0E], "Other")
    return MemoryModule(capacity_bytes=capacity, speed_mhz=speed, form_factor=form_factor)


def read_memory_modules(
    entries_dir: Path = _DMI_ENTRIES_DIR,
) -> tuple[tuple[MemoryModule, ...], int]:
    """
    Read installed modules and the slot count from the DMI tables.

    Every type 17 record is a slot; populated ones are modules. The raw
    entries are usually root-only, an unreadable table gives no modules.
    """
    modules: list[MemoryModule] = []
    slots = 0
    try:
        records = [(entry / "raw").read_bytes() for entry in sorted(entries_dir.glob("17-*"))]
    except OSError:
        return (), 0

    for record in records:
        try:
            module = parse_memory_device(record)
        except (ValueError, struct.error):
            continue
        slots += 1
        if module is not None:
            modules.append(module)
    return tuple(modules), slots


class PsutilProvider:
    """
    CounterProvider backed by psutil.

    Per-process queries go through psutil.process_iter(), which releases each
    process handle once its attributes are read. Processes that exit,
    deny access or turn zombie mid-enumeration are skipped.
    """

    def __init__(self) -> None:
        # Prime the CPU counters (first call returns 0.0)
        psutil.cpu_percent()
        psutil.cpu_percent(percpu=True)

    def overall_cpu_load(self) -> int:
        try:
            return int(round(psutil.cpu_percent()))
        except (psutil.Error, OSError):
            return 0

    def per_core_loads(self) -> dict[str, int]:
        loads = psutil.cpu_percent(percpu=True)
        return {str(index): int(round(load)) for index, load in enumerate(loads)}

    def process_cpu_times(self) -> list[ProcessCpuTime]:
        samples: list[ProcessCpuTime] = []

        for proc in psutil.process_iter(attrs=["pid", "name", "cpu_times"]):
            try:
                info = proc.info
                cpu_times = info.get("cpu_times")
                if cpu_times is None:
                    # Access denied for this attribute
                    continue

                samples.append(
                    ProcessCpuTime(
                        pid=info["pid"],
                        name=info.get("name") or "",
                        cpu_time_ms=(cpu_times.user + cpu_times.system) * 1000.0,
                    )
                )
            except _PROCESS_ERRORS:
                continue

        return samples

    def process_memory(self) -> list[ProcessPrivateMemory]:
        samples: list[ProcessPrivateMemory] = []

        for proc in psutil.process_iter(attrs=["pid", "name", "memory_info"]):
            try:
                info = proc.info
                mem_info = info.get("memory_info")
                if mem_info is None:
                    continue

                # Windows reports private bytes, elsewhere fall back to RSS
                private_bytes = getattr(mem_info, "private", mem_info.rss)
                samples.append(
                    ProcessPrivateMemory(
                        pid=info["pid"],
                        name=info.get("name") or "",
                        private_bytes=private_bytes,
                    )
                )
            except _PROCESS_ERRORS:
                continue

        return samples

    def system_memory_counters(self) -> MemoryCounters:
        mem = psutil.virtual_memory()
        meminfo = read_meminfo()

        committed_kb = meminfo.get("Committed_AS")
        commit_limit_kb = meminfo.get("CommitLimit")
        cached = getattr(mem, "cached", None)
        # Compressed pool size, only on kernels with zswap accounting
        zswap_kb = meminfo.get("Zswap")

        return MemoryCounters(
            total_kb=mem.total // 1024,
            free_kb=mem.available // 1024,
            committed_bytes=committed_kb * 1024 if committed_kb is not None else None,
            commit_limit_bytes=commit_limit_kb * 1024 if commit_limit_kb is not None else None,
            cache_bytes=cached,
            compressed_bytes=zswap_kb * 1024 if zswap_kb is not None else None,
        )

    def uptime(self) -> float:
        return time.time() - psutil.boot_time()

    def logical_core_count(self) -> int:
        return psutil.cpu_count(logical=True) or 1

    def memory_modules(self) -> tuple[tuple[MemoryModule, ...], int]:
        # psutil has no DIMM inventory, read SMBIOS directly
        return read_memory_modules()

    def cpu_cache_sizes(self) -> dict[int, int]:
        return read_cpu_cache_sizes()
