"""CLI for container-metrics.

Provides a rich command-line interface using Typer for:
- Sampling a container's metrics into the configured sink
- Validating and displaying configuration
- Generating a sample configuration file
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from container_metrics.core.config import load_config
from container_metrics.core.errors import MetricsError
from container_metrics.core.schemas import CollectorConfig
from container_metrics.monitoring.base import RateSample
from container_metrics.monitoring.docker_stats_source import DockerStatsSource
from container_metrics.monitoring.lifecycle import ContainerMetric, LifecycleState
from container_metrics.monitoring.registry import InMemoryContainerRegistry
from container_metrics.monitoring.sample_cycle import SampleCycle
from container_metrics.sinks import build_sink
from container_metrics.utils.logging import get_logger, setup_logging

app = typer.Typer(
    name="container-metrics",
    help="Per-container CPU, memory and network rate collector",
    add_completion=False,
)

console = Console()
logger = get_logger(__name__)


def _load(config: Path | None) -> CollectorConfig:
    """Load a config file, or defaults when none is given."""
    if config is None:
        return CollectorConfig()
    try:
        return load_config(config)
    except Exception as e:
        console.print(f"[bold red]Error loading config: {e}[/]")
        raise typer.Exit(1) from e


@app.command()
def watch(
    container: str = typer.Option(..., "--container", help="Container ID or name"),
    config: Path | None = typer.Option(
        None, "--config", "-c", help="Path to collector configuration file (YAML/JSON)"
    ),
    pid: int | None = typer.Option(
        None, "--pid", help="Host PID of the container (looked up via Docker if omitted)"
    ),
    once: bool = typer.Option(False, "--once", help="Take one sample, print it and exit"),
    log_level: str = typer.Option("INFO", "--log-level", "-l", help="Logging level"),
    log_file: Path | None = typer.Option(
        None, "--log-file", help="Write logs to file in addition to console"
    ),
    json_logs: bool = typer.Option(
        False, "--json-logs", help="Output logs in JSON format (for programmatic parsing)"
    ),
) -> None:
    """Sample a container every step and send its rates to the sink."""
    setup_logging(
        level=log_level, log_file=log_file, json_format=json_logs, rich_console=not json_logs
    )
    cfg = _load(config)

    source = DockerStatsSource.from_env(
        timeout=cfg.sampling.fetch_timeout, base_url=cfg.docker_base_url
    )
    if pid is None:
        pid = source.container_pid(container)
        if pid is None:
            console.print(f"[bold red]Container {container} is not running[/]")
            raise typer.Exit(1)

    sink = build_sink(cfg.sink)
    registry = InMemoryContainerRegistry()
    cycle = SampleCycle(
        cfg.sampling,
        source,
        sink,
        step_seconds=cfg.step_seconds,
        endpoint=cfg.endpoint,
        tag=cfg.tag,
    )
    metric = ContainerMetric(
        cycle,
        registry,
        proc_root=cfg.proc_root,
        max_consecutive_failures=cfg.max_consecutive_failures,
    )
    registry.add(container, metric)

    try:
        with metric:
            try:
                metric.init(container, pid)
            except MetricsError as e:
                console.print(f"[bold red]Could not initialize {container}: {e}[/]")
                raise typer.Exit(1) from e

            if metric.status is not LifecycleState.ACTIVE:
                console.print(f"[bold yellow]Container {container} exited[/]")
                raise typer.Exit(1)

            console.print(
                f"[bold blue]Sampling {container} (pid {pid}) every {cfg.step_seconds}s[/]"
            )
            if once:
                metric.stop_event.wait(cfg.step_seconds)
                try:
                    rates = metric.sample()
                except MetricsError as e:
                    console.print(f"[bold red]Sampling failed: {e}[/]")
                    raise typer.Exit(1) from e
                _show_rates_table(container, rates)
            else:
                metric.poll_forever()
    except KeyboardInterrupt:
        console.print("[bold yellow]Interrupted[/]")
    finally:
        sink.close()


@app.command()
def show_config(
    config: Path | None = typer.Option(
        None, "--config", "-c", help="Path to collector configuration file (YAML/JSON)"
    ),
) -> None:
    """Validate a configuration file and display it."""
    cfg = _load(config)
    _show_config_summary(cfg)
    console.print("[bold green]Configuration is valid![/]")


@app.command()
def init_config(
    output: Path = typer.Option(
        Path("config.yaml"), "--output", "-o", help="Output configuration file"
    ),
) -> None:
    """Generate a sample configuration file."""
    sample_config = """\
# container-metrics configuration

# Sampling interval (seconds), also reported as the metric step
step_seconds: 60

# Host name reported with every metric (defaults to this machine's name)
# endpoint: my-host
tag: "service=web"

sampling:
  fetch_timeout: 5.0    # timeout handed to the Docker stats request
  force_timeout: 10.0   # hard deadline, must be >= fetch_timeout
  vlan_prefix: eth      # interfaces starting with this are reported
  default_vlan: eth0

# Consecutive failed fetches tolerated before a container is dropped
max_consecutive_failures: 3

sink:
  kind: falcon          # log | jsonl | falcon
  url: http://127.0.0.1:1988/v1/push
  timeout_seconds: 5.0
"""
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(sample_config)
    console.print(f"[bold green]Sample configuration written to {output}[/]")


def _show_config_summary(config: CollectorConfig) -> None:
    """Display a summary of the collector configuration."""
    table = Table(title="Collector Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Endpoint", config.endpoint)
    table.add_row("Tag", config.tag or "-")
    table.add_row("Step", f"{config.step_seconds}s")
    table.add_row("Fetch Timeout", f"{config.sampling.fetch_timeout}s")
    table.add_row("Force Timeout", f"{config.sampling.force_timeout}s")
    table.add_row("VLAN Prefix", config.sampling.vlan_prefix or "-")
    table.add_row("Default VLAN", config.sampling.default_vlan or "-")
    table.add_row("Sink", config.sink.kind.value)
    if config.sink.url:
        table.add_row("Sink URL", config.sink.url)
    if config.sink.path:
        table.add_row("Sink Path", str(config.sink.path))

    console.print(table)


def _show_rates_table(container: str, rates: RateSample) -> None:
    """Display one RateSample."""
    table = Table(title=f"Container {container[:12]}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="bold", justify="right")

    for key, value in sorted(rates.items()):
        table.add_row(key, f"{value:.6g}")

    console.print(table)


if __name__ == "__main__":
    app()
