"""CLI commands for cesium."""

import time
from pathlib import Path

import click

from cesium.config import Config
from cesium.models import Snapshot


def format_snapshot(snapshot: Snapshot) -> str:
    """Render a snapshot as plain text."""
    mem = snapshot.memory
    lines = [f"CPU: {snapshot.overall_cpu}%"]
    for core in sorted(snapshot.cores, key=lambda c: c.usage, reverse=True):
        lines.append(f"  {core.display_name:<10} {core.usage:3d}%")

    lines.append(
        f"Memory: {mem.used_gb} / {mem.total_gb} GB ({mem.used_percent}%), free {mem.free_gb} GB"
    )
    lines.append(f"  Commit {mem.committed_gb} / {mem.commit_limit_gb} GB")
    lines.append(f"  Cache {mem.cache_gb} GB, compressed {mem.compressed_mb} MB")

    lines.append("Top CPU:")
    if not snapshot.top_cpu:
        lines.append("  (no active processes)")
    for proc in snapshot.top_cpu:
        lines.append(f"  {proc.display_name:<40} {proc.cpu_percent:3d}%")

    lines.append("Top memory:")
    for proc in snapshot.top_memory:
        lines.append(
            f"  {proc.display_name:<40} {proc.usage_mb:10.2f} MB {proc.usage_percent:5.1f}%"
        )

    lines.append(f"Uptime: {int(snapshot.uptime_seconds)}s")
    return "\n".join(lines)


@click.group(invoke_without_command=True)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to config.toml",
)
@click.version_option(package_name="cesium")
@click.pass_context
def main(ctx, config_path: Path | None) -> None:
    """Live CPU and memory monitor."""
    try:
        config = Config.load(config_path)
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["config_path"] = config_path

    if ctx.invoked_subcommand is None:
        ctx.invoke(tui)


@main.command()
@click.pass_context
def tui(ctx) -> None:
    """Launch the interactive dashboard."""
    from cesium.app import run_app
    from cesium.logsetup import configure_logging

    config = ctx.obj["config"]
    configure_logging(config)
    run_app(config)


@main.command()
@click.option("--interval", default=1.0, show_default=True, help="Seconds between the two ticks")
@click.pass_context
def snapshot(ctx, interval: float) -> None:
    """Take two ticks and print the second snapshot."""
    from cesium.engine import SamplingEngine
    from cesium.logsetup import configure_logging
    from cesium.provider import PsutilProvider

    config = ctx.obj["config"]
    configure_logging(config, console=True)

    # The first tick only seeds the CPU deltas
    engine = SamplingEngine(PsutilProvider(), config)
    engine.tick()
    time.sleep(max(interval, 0.1))
    click.echo(format_snapshot(engine.tick()))


@main.command("init-config")
@click.option("--force", is_flag=True, help="Overwrite an existing config file")
@click.pass_context
def init_config(ctx, force: bool) -> None:
    """Write the default config file."""
    config = Config()
    path = ctx.obj["config_path"] or config.config_path
    if path.exists() and not force:
        click.echo(f"Config already exists at {path}")
        return

    config.save(path)
    click.echo(f"Created config at {path}")
