"""cesium - Main Textual application."""

from queue import Empty, Queue

from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal
from textual.widgets import DataTable, Footer, Static

from cesium.config import Config
from cesium.engine import SamplingEngine
from cesium.models import HardwareInfo, ProcessMemory, ProcessUsage, Snapshot
from cesium.monitor import SystemMonitor
from cesium.provider import PsutilProvider


# RAM only turns red when nearly exhausted
MEMORY_RED = 90


def usage_color(percent: float, red: float = 80, yellow: float = 60) -> str:
    """Rich color for a usage percentage."""
    if percent > red:
        return "red"
    if percent > yellow:
        return "yellow"
    return "dodger_blue2"


def usage_bar(percent: float, width: int = 20, red: float = 80, yellow: float = 60) -> str:
    """Render a percentage as a colored bar."""
    filled = min(max(int(percent * width / 100), 0), width)
    color = usage_color(percent, red, yellow)
    return f"[{color}]█[/{color}]" * filled + "[dim]░[/dim]" * (width - filled)


def format_uptime(seconds: float) -> str:
    """Format uptime as 'N days HH:MM:SS'."""
    seconds = max(seconds, 0.0)
    days = int(seconds // 86400)
    hours = int((seconds % 86400) // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)
    return f"{days} days {hours:02d}:{minutes:02d}:{secs:02d}"


def format_hardware(hardware: HardwareInfo) -> str:
    """One-line summary of memory modules and CPU caches."""
    modules = hardware.memory_modules
    if modules:
        first = modules[0]
        module_str = (
            f"{len(modules)}/{hardware.memory_slots} slots, "
            f"{first.capacity_gb:.1f} GB {first.form_factor} @ {first.speed_mhz} MHz"
        )
    else:
        module_str = "modules n/a"

    caches = []
    for level, size_kb in hardware.cpu_cache_kb:
        size = f"{size_kb / 1024:.1f} MB" if size_kb >= 1024 else f"{size_kb} KB"
        caches.append(f"L{level} {size}")
    cache_str = " ".join(caches) if caches else "cache n/a"

    return f"{module_str} | {cache_str}"


class HeaderStats(Static):
    """Header widget showing CPU, memory and uptime."""

    DEFAULT_CSS = """
    HeaderStats {
        height: auto;
        min-height: 5;
        padding: 1;
        background: $surface;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize HeaderStats."""
        super().__init__(*args, **kwargs)
        self._snapshot: Snapshot | None = None
        self._hardware: HardwareInfo | None = None

    def compose(self) -> ComposeResult:
        """Compose the header stats layout."""
        yield Horizontal(
            Static(self._get_cpu_info(), id="cpu-info"),
            Static(self._get_mem_info(), id="mem-info"),
        )

    def set_hardware(self, hardware: HardwareInfo) -> None:
        self._hardware = hardware

    def update_stats(self, snapshot: Snapshot) -> None:
        """Update the statistics from a snapshot."""
        self._snapshot = snapshot
        self._refresh_display()

    def _refresh_display(self) -> None:
        """Refresh the display with current data."""
        try:
            cpu_info = self.query_one("#cpu-info", Static)
            mem_info = self.query_one("#mem-info", Static)
            cpu_info.update(self._get_cpu_info())
            mem_info.update(self._get_mem_info())
        except Exception:
            pass  # Widget not mounted yet

    def _get_cpu_info(self) -> str:
        """Get CPU info display, busiest core first."""
        if self._snapshot is None:
            return "Loading CPU info..."

        snapshot = self._snapshot
        lines = [f"CPU    \\[{usage_bar(snapshot.overall_cpu)}] {snapshot.overall_cpu:3d}%"]
        for core in sorted(snapshot.cores, key=lambda c: c.usage, reverse=True):
            lines.append(f"{core.display_name:<7}\\[{usage_bar(core.usage)}] {core.usage:3d}%")
        return "\n".join(lines)

    def _get_mem_info(self) -> str:
        """Get memory info display."""
        if self._snapshot is None:
            return "Loading memory info..."

        mem = self._snapshot.memory
        lines = [
            f"Mem\\[{usage_bar(mem.used_percent, red=MEMORY_RED, yellow=MEMORY_RED)}] "
            f"{mem.used_percent}%",
            f"Used: {mem.used_gb} GB  Free: {mem.free_gb} GB  Total: {mem.total_gb} GB",
            f"Commit: {mem.committed_gb} / {mem.commit_limit_gb} GB",
            f"Cache: {mem.cache_gb} GB  Compressed: {mem.compressed_mb} MB",
            f"Uptime: {format_uptime(self._snapshot.uptime_seconds)}",
        ]
        if self._hardware is not None:
            lines.append(format_hardware(self._hardware))
        return "\n".join(lines)


class TopCpuTable(Container):
    """Processes with the highest CPU usage over the last tick."""

    DEFAULT_CSS = """
    TopCpuTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def compose(self) -> ComposeResult:
        """Compose the CPU table."""
        yield DataTable(id="cpu-table")

    def on_mount(self) -> None:
        """Initialize the data table when mounted."""
        table = self.query_one("#cpu-table", DataTable)
        table.cursor_type = "row"
        table.add_column("Process", key="process")
        table.add_column("CPU%", key="cpu", width=8)

    def update_processes(self, processes: tuple[ProcessUsage, ...]) -> None:
        """Replace the table rows with the ranked processes."""
        table = self.query_one("#cpu-table", DataTable)
        table.clear()
        for proc in processes:
            color = usage_color(proc.cpu_percent)
            table.add_row(
                proc.display_name,
                f"[{color}]{proc.cpu_percent}%[/{color}]",
                key=str(proc.pid),
            )


class TopMemoryTable(Container):
    """Processes with the most private memory."""

    DEFAULT_CSS = """
    TopMemoryTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def compose(self) -> ComposeResult:
        """Compose the memory table."""
        yield DataTable(id="mem-table")

    def on_mount(self) -> None:
        """Initialize the data table when mounted."""
        table = self.query_one("#mem-table", DataTable)
        table.cursor_type = "row"
        table.add_column("Process", key="process")
        table.add_column("Private", key="mb", width=12)
        table.add_column("MEM%", key="percent", width=8)

    def update_processes(self, processes: tuple[ProcessMemory, ...]) -> None:
        """Replace the table rows with the ranked processes."""
        table = self.query_one("#mem-table", DataTable)
        table.clear()
        for proc in processes:
            table.add_row(
                proc.display_name,
                f"{proc.usage_mb:,.2f} MB",
                f"{proc.usage_percent:.1f}%",
                key=str(proc.pid),
            )


class CesiumApp(App):
    """Main cesium application."""

    TITLE = "cesium"
    SUB_TITLE = "Live Resource Monitor"

    CSS = """
    Screen {
        layout: vertical;
    }

    #header-stats {
        dock: top;
        height: auto;
        min-height: 6;
    }

    Horizontal {
        height: auto;
    }

    #cpu-info {
        width: 1fr;
        padding-right: 2;
    }

    #mem-info {
        width: 1fr;
        padding-left: 2;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        engine: SamplingEngine | None = None,
        config: Config | None = None,
    ) -> None:
        """
        Initialize the CesiumApp.

        Args:
            engine: Sampling engine, built on PsutilProvider if not provided.
            config: Application config, defaults if not provided.
        """
        super().__init__()
        self._settings = config or Config()
        self._engine = engine or SamplingEngine(PsutilProvider(), self._settings)
        self._update_queue: Queue[Snapshot] = Queue()
        self._monitor = SystemMonitor(
            self._engine,
            self._update_queue,
            poll_rate=self._settings.sampling.interval,
        )

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield HeaderStats(id="header-stats")
        yield TopCpuTable()
        yield TopMemoryTable()
        yield Footer()

    def on_mount(self) -> None:
        """Start the system monitor when the app is mounted."""
        self.query_one("#header-stats", HeaderStats).set_hardware(self._engine.hardware)
        self._monitor.start()
        # Snapshots are applied here, on the UI thread
        self.set_interval(0.25, self._check_for_updates)

    def on_unmount(self) -> None:
        """Stop sampling when the app shuts down."""
        self._monitor.stop()

    def _check_for_updates(self) -> None:
        """Check the queue for snapshots and apply the most recent one."""
        snapshot = None
        while True:
            try:
                snapshot = self._update_queue.get_nowait()
            except Empty:
                break

        if snapshot is not None:
            self.apply_snapshot(snapshot)

    def apply_snapshot(self, snapshot: Snapshot) -> None:
        """Update the UI with a new snapshot."""
        try:
            header = self.query_one("#header-stats", HeaderStats)
            header.update_stats(snapshot)
        except Exception:
            pass  # Rendering must never take the app down

        try:
            self.query_one(TopCpuTable).update_processes(snapshot.top_cpu)
        except Exception:
            pass

        try:
            self.query_one(TopMemoryTable).update_processes(snapshot.top_memory)
        except Exception:
            pass

    def action_quit(self) -> None:
        """Handle quit action with graceful cleanup."""
        self._monitor.stop()
        self.exit()


def run_app(config: Config | None = None) -> None:
    """Run the cesium TUI."""
    app = CesiumApp(config=config)
    app.run()
