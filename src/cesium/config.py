"""Configuration system for cesium."""

from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path

import tomlkit


@dataclass
class SamplingConfig:
    """Sampling cadence."""

    interval: float = 1.0  # Seconds between ticks


@dataclass
class RankingConfig:
    """Top-N cutoffs and noise filters for the process rankings."""

    cpu_top_n: int = 5
    memory_top_n: int = 10
    memory_floor_mb: float = 0.1  # Processes below this are not ranked


@dataclass
class LoggingConfig:
    """Log file settings."""

    level: str = "INFO"
    max_bytes: int = 5 * 1024 * 1024  # 5MB
    backup_count: int = 3


def _dataclass_to_table(obj: object) -> tomlkit.items.Table:
    """Convert a dataclass instance to a tomlkit Table recursively."""
    table = tomlkit.table()
    for f in fields(obj):  # type: ignore[arg-type]
        value = getattr(obj, f.name)
        if is_dataclass(value) and not isinstance(value, type):
            table.add(f.name, _dataclass_to_table(value))
        else:
            table.add(f.name, value)
    return table


def _load_section(cls: type, name: str, data: object) -> object:
    """Build a section dataclass, taking defaults for missing keys."""
    if not isinstance(data, dict):
        raise ValueError(f"[{name}] must be a table, got {data!r}")
    defaults = cls()
    values = {f.name: data.get(f.name, getattr(defaults, f.name)) for f in fields(cls)}
    return cls(**values)


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _load_sampling_config(data: object) -> SamplingConfig:
    """Load sampling config, rejecting non-positive intervals."""
    section = _load_section(SamplingConfig, "sampling", data)
    if not _is_number(section.interval) or section.interval <= 0:
        raise ValueError(f"interval must be a number > 0, got {section.interval!r}")
    section.interval = float(section.interval)
    return section


def _load_ranking_config(data: object) -> RankingConfig:
    """Load ranking config, rejecting negative cutoffs and floors."""
    section = _load_section(RankingConfig, "ranking", data)
    for name in ("cpu_top_n", "memory_top_n"):
        value = getattr(section, name)
        if not _is_int(value) or value < 0:
            raise ValueError(f"{name} must be an integer >= 0, got {value!r}")
    if not _is_number(section.memory_floor_mb) or section.memory_floor_mb < 0:
        raise ValueError(
            f"memory_floor_mb must be a number >= 0, got {section.memory_floor_mb!r}"
        )
    return section


def _load_logging_config(data: object) -> LoggingConfig:
    """Load logging config. Unknown level names are handled at setup."""
    section = _load_section(LoggingConfig, "logging", data)
    if not isinstance(section.level, str):
        raise ValueError(f"level must be a string, got {section.level!r}")
    for name in ("max_bytes", "backup_count"):
        value = getattr(section, name)
        if not _is_int(value) or value < 0:
            raise ValueError(f"{name} must be an integer >= 0, got {value!r}")
    return section


@dataclass
class Config:
    """Main configuration container."""

    sampling: SamplingConfig = field(default_factory=SamplingConfig)
    ranking: RankingConfig = field(default_factory=RankingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def config_dir(self) -> Path:
        """Configuration directory."""
        return Path.home() / ".config" / "cesium"

    @property
    def config_path(self) -> Path:
        """Path to config file."""
        return self.config_dir / "config.toml"

    @property
    def state_dir(self) -> Path:
        """State directory for logs."""
        return Path.home() / ".local" / "state" / "cesium"

    @property
    def log_path(self) -> Path:
        """JSON Lines log file."""
        return self.state_dir / "cesium.log"

    def save(self, path: Path | None = None) -> None:
        """Save config to TOML file."""
        path = path or self.config_path
        path.parent.mkdir(parents=True, exist_ok=True)

        doc = tomlkit.document()
        for name in ("sampling", "ranking", "logging"):
            doc.add(name, _dataclass_to_table(getattr(self, name)))
            doc.add(tomlkit.nl())

        path.write_text(tomlkit.dumps(doc))

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """Load config from TOML file, returning defaults for missing values."""
        defaults = cls()
        path = path or defaults.config_path
        if not path.exists():
            return defaults

        try:
            with open(path) as f:
                data = tomlkit.load(f).unwrap()
        except tomlkit.exceptions.TOMLKitError as e:
            raise ValueError(f"Failed to parse config file {path}: {e}") from e

        return cls(
            sampling=_load_sampling_config(data.get("sampling", {})),
            ranking=_load_ranking_config(data.get("ranking", {})),
            logging=_load_logging_config(data.get("logging", {})),
        )
