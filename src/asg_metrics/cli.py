"""Local CLI for the Auto Scaling group metrics function."""

import logging
import time
from typing import Annotated

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from asg_metrics.errors import ConfigError
from asg_metrics.handler import handle, load_config
from asg_metrics.models import ExecutionStrategy, MetricsConfig

app = typer.Typer(
    name="asg-metrics",
    help="CloudWatch CPU and network summary for an Auto Scaling group",
    no_args_is_help=True,
)
console = Console()


def _config(
    strategy: ExecutionStrategy | None,
    region: str | None,
    group: str | None,
    timeout: float | None,
) -> MetricsConfig:
    try:
        config = load_config()
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from None

    overrides = {
        "strategy": strategy,
        "aws_region": region,
        "group_name": group,
        "timeout_sec": timeout,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    try:
        return MetricsConfig.model_validate({**config.model_dump(), **overrides})
    except ValidationError as e:
        console.print(f"[red]Error:[/red] Invalid configuration: {escape(str(e))}")
        raise typer.Exit(1) from None


def _setup_logging(config: MetricsConfig) -> None:
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command("run")
def run_once(
    strategy: Annotated[
        ExecutionStrategy | None, typer.Option("--strategy", "-s", help="Execution strategy")
    ] = None,
    region: Annotated[str | None, typer.Option("--region", "-r", help="AWS region")] = None,
    group: Annotated[
        str | None, typer.Option("--group", "-g", help="Auto Scaling group name")
    ] = None,
    timeout: Annotated[
        float | None, typer.Option("--timeout", "-t", help="Deadline in seconds")
    ] = None,
) -> None:
    """Run a single invocation locally and print the response."""
    config = _config(strategy, region, group, timeout)
    _setup_logging(config)

    console.print(Panel.fit("Auto Scaling Group Metrics", style="bold blue"))
    console.print(f"  Group:    [cyan]{config.group_name}[/cyan]")
    console.print(f"  Region:   [cyan]{config.aws_region}[/cyan]")
    console.print(f"  Strategy: [cyan]{config.strategy.value}[/cyan]")
    console.print()

    try:
        response = handle(config)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from None

    style = "green" if response.status_code == 200 else "red"
    console.print(f"[{style}]Status {response.status_code}[/{style}]")
    console.print_json(response.body)

    if response.status_code != 200:
        raise typer.Exit(1)


@app.command()
def compare(
    region: Annotated[str | None, typer.Option("--region", "-r", help="AWS region")] = None,
    group: Annotated[
        str | None, typer.Option("--group", "-g", help="Auto Scaling group name")
    ] = None,
) -> None:
    """Run both execution strategies back to back and compare latency."""
    base = _config(None, region, group, None)
    _setup_logging(base)

    table = Table(title=f"Strategy comparison: {base.group_name}")
    table.add_column("Strategy", style="cyan")
    table.add_column("Status")
    table.add_column("Elapsed (s)", justify="right")

    for strategy in ExecutionStrategy:
        config = base.model_copy(update={"strategy": strategy})
        with console.status(f"[bold green]Running {strategy.value}..."):
            try:
                elapsed, response = _timed_handle(config)
            except ConfigError as e:
                console.print(f"[red]Error:[/red] {escape(str(e))}")
                raise typer.Exit(1) from None
        table.add_row(strategy.value, str(response.status_code), f"{elapsed:.2f}")

    console.print(table)


def _timed_handle(config: MetricsConfig):
    start = time.perf_counter()
    response = handle(config)
    return time.perf_counter() - start, response


@app.callback()
def main() -> None:
    """Auto Scaling group metrics CLI."""
    pass


if __name__ == "__main__":
    app()
