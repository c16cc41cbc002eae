"""Main CLI entry point for the AEM orchestrator."""

import sys
from pathlib import Path
from typing import List, NoReturn, Optional

import typer
from pydantic import BaseModel, Field
from rich.console import Console
from rich.table import Table

from ..core.config import load_config
from ..core.context import ApplicationContext
from ..core.errors import OrchestratorError
from ..core.log import configure_logging, get_logger
from ..core.value_objects import InstanceId


class GlobalCliOptions(BaseModel):
    """Global CLI options that can be used across all commands."""

    verbose: int = Field(0, description="Increase verbosity level")
    config_file: Optional[Path] = Field(None, description="Configuration file path")
    log_level: str = Field(
        "WARNING", description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )


app = typer.Typer(
    name="aem-orchestrator",
    help="Elastic lifecycle management for AEM on AWS",
    no_args_is_help=True,
    rich_markup_mode="markdown",
)
group_app = typer.Typer(help="Inspect and scale auto scaling groups", no_args_is_help=True)
app.add_typer(group_app, name="group")
console = Console()
logger = get_logger(__name__)


def _instance_id(value: str) -> str:
    try:
        return str(InstanceId(value))
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e


def build_context(ctx: typer.Context) -> ApplicationContext:
    """Load configuration and assemble the application context."""
    cli_options: GlobalCliOptions = ctx.obj["cli_options"]
    config = load_config(config_file=cli_options.config_file)
    return ApplicationContext.create(config, logger=get_logger("aem_orchestrator"))


def _fail(message: str) -> NoReturn:
    console.print(f"[red]{message}[/red]")
    raise typer.Exit(1)


@app.callback()
def main(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0, "--verbose", "-v", count=True, help="Increase verbosity level"
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Logging level (DEBUG, INFO, WARNING, ERROR) - explicit level",
    ),
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Configuration file path"
    ),
) -> None:
    """AEM Orchestrator: elastic lifecycle management for AEM on AWS."""
    if verbose > 0 and log_level is not None:
        console.print("[red]Error: Cannot specify both --verbose and --log-level[/red]")
        raise typer.Exit(1)

    if log_level is None:
        resolved_log_level = (
            "DEBUG" if verbose >= 2 else "INFO" if verbose == 1 else "WARNING"
        )
    else:
        resolved_log_level = log_level.upper()

    cli_options = GlobalCliOptions(
        verbose=verbose,
        config_file=config_file,
        log_level=resolved_log_level,
    )

    ctx.ensure_object(dict)
    ctx.obj["cli_options"] = cli_options

    configure_logging(
        level=cli_options.log_level, enable_console=True, enable_json=False
    )


@app.command()
def version() -> None:
    """Show version information."""
    from .. import __version__
    import boto3

    table = Table(title="AEM Orchestrator Version Information")
    table.add_column("Component", style="cyan")
    table.add_column("Version", style="green")
    table.add_row("AEM Orchestrator", __version__)
    table.add_row("boto3", boto3.__version__)
    console.print(table)


@app.command()
def config(ctx: typer.Context) -> None:
    """Show current configuration."""
    cli_options: GlobalCliOptions = ctx.obj["cli_options"]
    try:
        current_config = load_config(config_file=cli_options.config_file)
    except OrchestratorError as e:
        _fail(f"Error getting configuration: {e}")

    table = Table(title="AEM Orchestrator Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("AWS Region", current_config.aws.region or "(default)")
    if current_config.aws.profile_name:
        table.add_row("AWS Profile", current_config.aws.profile_name)
    if current_config.aws.endpoint_url:
        table.add_row("AWS Endpoint", current_config.aws.endpoint_url)
    table.add_row("AEM Protocol", current_config.aem.protocol)
    table.add_row("Author Dispatcher Port", str(current_config.aem.author_dispatcher_port))
    table.add_row("Author ELB", current_config.aem.author_elb_name or "(not set)")
    table.add_row("Author ELB Port", str(current_config.aem.author_elb_port))
    table.add_row("Author Host Tag", current_config.aem.author_host_tag_key)
    table.add_row("AEM User", current_config.aem.username)
    table.add_row("Retry Attempts", str(current_config.retry.max_attempts))
    table.add_row("Retry Delay", f"{current_config.retry.delay_seconds}s")
    table.add_row("Log Level", current_config.log_level)
    console.print(table)


@app.command("provision-dispatcher")
def provision_dispatcher(
    ctx: typer.Context,
    instance_id: str = typer.Argument(..., callback=_instance_id, help="EC2 instance ID"),
) -> None:
    """Register a new author dispatcher for cache flushes and tag it."""
    try:
        workflow = build_context(ctx).dispatcher_workflow()
    except OrchestratorError as e:
        _fail(str(e))
    result = workflow.run(instance_id)
    if not result.succeeded:
        _fail(
            f"Provisioning of {instance_id} failed ({result.outcome.value}): "
            f"{result.error_message}"
        )
    console.print(f"[green]Provisioned author dispatcher {instance_id}[/green]")


@app.command("private-ip")
def private_ip(
    ctx: typer.Context,
    instance_id: str = typer.Argument(..., callback=_instance_id, help="EC2 instance ID"),
) -> None:
    """Resolve the private IP of an instance, waiting while it is unassigned."""
    try:
        address = build_context(ctx).gateway.resolve_private_address(instance_id)
    except OrchestratorError as e:
        _fail(str(e))
    if address is None:
        _fail(f"Private IP of {instance_id} is unresolved")
    console.print(address)


@app.command()
def tags(
    ctx: typer.Context,
    instance_id: str = typer.Argument(..., callback=_instance_id, help="EC2 instance ID"),
) -> None:
    """Show the tags of an instance."""
    try:
        instance_tags = build_context(ctx).gateway.get_tags(instance_id)
    except OrchestratorError as e:
        _fail(str(e))

    table = Table(title=f"Tags of {instance_id}")
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")
    for key in sorted(instance_tags):
        table.add_row(key, instance_tags[key])
    console.print(table)


@app.command()
def tag(
    ctx: typer.Context,
    instance_id: str = typer.Argument(..., callback=_instance_id, help="EC2 instance ID"),
    pairs: List[str] = typer.Argument(..., help="Tags as KEY=VALUE"),
) -> None:
    """Add tags to an instance."""
    new_tags = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected KEY=VALUE, got: {pair}")
        new_tags[key] = value

    try:
        build_context(ctx).gateway.add_tags(instance_id, new_tags)
    except OrchestratorError as e:
        _fail(str(e))
    console.print(f"[green]Tagged {instance_id} with {len(new_tags)} tag(s)[/green]")


@app.command()
def snapshot(
    ctx: typer.Context,
    instance_id: str = typer.Argument(..., callback=_instance_id, help="EC2 instance ID"),
    device_name: str = typer.Argument(..., help="Block device name, e.g. /dev/sdb"),
    description: str = typer.Option(
        "", "--description", "-d", help="Snapshot description"
    ),
) -> None:
    """Snapshot the EBS volume attached to an instance under a device name."""
    description = description or f"{instance_id} {device_name}"
    try:
        result = build_context(ctx).gateway.snapshot_device(
            instance_id, device_name, description
        )
    except OrchestratorError as e:
        _fail(str(e))
    console.print(
        f"[green]Created snapshot {result.snapshot_id} of {result.volume_id}[/green]"
    )


@app.command()
def terminate(
    ctx: typer.Context,
    instance_id: str = typer.Argument(..., callback=_instance_id, help="EC2 instance ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Terminate an instance."""
    if not yes:
        typer.confirm(f"Terminate {instance_id}?", abort=True)
    try:
        build_context(ctx).gateway.terminate_instance(instance_id)
    except OrchestratorError as e:
        _fail(str(e))
    console.print(f"[yellow]Termination of {instance_id} requested[/yellow]")


@group_app.command("members")
def group_members(
    ctx: typer.Context,
    group_name: str = typer.Argument(..., help="Auto scaling group name"),
) -> None:
    """List the instances of an auto scaling group."""
    try:
        instance_ids = build_context(ctx).gateway.list_group_members(group_name)
    except OrchestratorError as e:
        _fail(str(e))
    for member in instance_ids:
        console.print(member)


@group_app.command("capacity")
def group_capacity(
    ctx: typer.Context,
    group_name: str = typer.Argument(..., help="Auto scaling group name"),
) -> None:
    """Show the desired capacity of an auto scaling group."""
    try:
        capacity = build_context(ctx).gateway.get_desired_capacity(group_name)
    except OrchestratorError as e:
        _fail(str(e))
    console.print(str(capacity))


@group_app.command("set-capacity")
def group_set_capacity(
    ctx: typer.Context,
    group_name: str = typer.Argument(..., help="Auto scaling group name"),
    desired_capacity: int = typer.Argument(..., min=0, help="New desired capacity"),
) -> None:
    """Set the desired capacity of an auto scaling group."""
    try:
        build_context(ctx).gateway.set_desired_capacity(group_name, desired_capacity)
    except OrchestratorError as e:
        _fail(str(e))
    console.print(
        f"[green]Desired capacity of {group_name} set to {desired_capacity}[/green]"
    )


def cli_main() -> None:
    """Entry point for the CLI."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)
    except (RuntimeError, OSError, ValueError, ImportError) as e:
        logger.error("Unexpected error: %s", e)
        console.print(f"[red]Unexpected error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    cli_main()
