"""Main CLI entry point for the Krucible client."""

from __future__ import annotations

import json
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click
from rich.console import Console
from rich.table import Table

from krucible import __version__
from krucible.core.config import ENV_ACCOUNT_ID, ENV_API_KEY_ID, ENV_API_KEY_SECRET, ENV_BASE_URL
from krucible.core.exceptions import KrucibleError
from krucible.utils.logging import get_logger, log_error, log_operation, setup_logging

if TYPE_CHECKING:
    from krucible.clients.krucible_client import KrucibleClient
    from krucible.core.config import KrucibleConfig
    from krucible.core.models import Cluster, Snapshot

console = Console()
logger = get_logger(__name__)

DURATION_CHOICES = ["1", "2", "3", "4", "5", "6", "permanent"]


class KrucibleContext:
    """Shared context for CLI commands with lazy initialization."""

    def __init__(self, config_path: str | None, overrides: dict[str, str | None]):
        """Initialize context.

        Args:
            config_path: Path to configuration file (optional, falls back to
                KRUCIBLE_* environment variables)
            overrides: Client settings given on the command line or through
                KRUCIBLE_* environment variables
        """
        self.config_path = config_path
        self.overrides = overrides
        self._config: KrucibleConfig | None = None
        self._client: KrucibleClient | None = None

    @property
    def config(self) -> KrucibleConfig:
        """Get or load config lazily."""
        if self._config is None:
            from krucible.core.config import KrucibleConfig

            if self.config_path:
                config = KrucibleConfig.from_file(self.config_path)
            else:
                config = KrucibleConfig.from_env(os.environ)
            self._config = config.with_client_overrides(**self.overrides)
        return self._config

    @property
    def client(self) -> KrucibleClient:
        """Get or create the Krucible client lazily."""
        if self._client is None:
            from krucible.clients.krucible_client import KrucibleClient

            self._client = KrucibleClient(self.config.client, polling=self.config.polling)
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()


@contextmanager
def reported_errors(operation: str) -> Iterator[None]:
    """Turn client errors into a readable message and exit code 1."""
    try:
        yield
    except KrucibleError as e:
        log_error(logger, e, operation=operation)
        console.print(f"[red]Error: {e}[/red]")
        raise SystemExit(1) from e


def _format_time(value: Any) -> str:
    return value.isoformat() if value else "-"


def _state_markup(state: str) -> str:
    color = {"ready": "green", "provisioning": "yellow"}.get(state, "red")
    return f"[{color}]{state}[/{color}]"


def render_clusters(clusters: list[Cluster], title: str) -> Table:
    table = Table(title=title)
    table.add_column("Cluster ID", style="cyan")
    table.add_column("Name", style="magenta")
    table.add_column("State", style="bold")
    table.add_column("Server", style="blue")
    table.add_column("Created")
    table.add_column("Expires")

    for cluster in clusters:
        table.add_row(
            cluster.id,
            cluster.display_name,
            _state_markup(cluster.state),
            cluster.connection_details.server or "-",
            _format_time(cluster.created_at),
            _format_time(cluster.expires_at) if cluster.expires_at else "never",
        )
    return table


def render_snapshots(snapshots: list[Snapshot], title: str) -> Table:
    table = Table(title=title)
    table.add_column("Snapshot ID", style="cyan")
    table.add_column("Cluster ID", style="magenta")
    table.add_column("State", style="bold")
    table.add_column("Created")

    for snapshot in snapshots:
        table.add_row(
            snapshot.id,
            snapshot.cluster_id,
            _state_markup(snapshot.state),
            _format_time(snapshot.created_at),
        )
    return table


def print_json(items: list[Any]) -> None:
    print(json.dumps([item.model_dump(mode="json", by_alias=True) for item in items], indent=2))


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Path to configuration file (KRUCIBLE_* variables override its client settings)",
)
@click.option("--base-url", envvar=ENV_BASE_URL, default=None, help="Krucible API base URL")
@click.option("--account-id", envvar=ENV_ACCOUNT_ID, default=None, help="Krucible account ID")
@click.option("--api-key-id", envvar=ENV_API_KEY_ID, default=None, help="API key ID")
@click.option(
    "--api-key-secret", envvar=ENV_API_KEY_SECRET, default=None, help="API key secret"
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Log level (overrides the configuration file)",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: str | None,
    base_url: str | None,
    account_id: str | None,
    api_key_id: str | None,
    api_key_secret: str | None,
    log_level: str | None,
) -> None:
    """Create and manage Krucible Kubernetes clusters."""
    krucible_ctx = KrucibleContext(
        config_path=config,
        overrides={
            "base_url": base_url,
            "account_id": account_id,
            "api_key_id": api_key_id,
            "api_key_secret": api_key_secret,
        },
    )
    ctx.obj = krucible_ctx
    ctx.call_on_close(krucible_ctx.close)

    with reported_errors("load_config"):
        logging_config = krucible_ctx.config.logging
    setup_logging(
        level=log_level or logging_config.level,
        format=logging_config.format,
        output=logging_config.output,
    )


@cli.command()
@click.option("--name", "display_name", required=True, help="Display name of the cluster")
@click.option(
    "--duration",
    type=click.Choice(DURATION_CHOICES),
    default="permanent",
    show_default=True,
    help="Hours the cluster should live",
)
@click.option("--timeout", type=float, default=None, help="Seconds to wait for provisioning")
@click.option("--namespace", default=None, help="List pods in this namespace once ready")
@click.pass_obj
def create(
    krucible_ctx: KrucibleContext,
    display_name: str,
    duration: str,
    timeout: float | None,
    namespace: str | None,
) -> None:
    """Create a cluster and wait until it is ready."""
    from krucible.core.models import CreateClusterConfig

    create_config = CreateClusterConfig(
        display_name=display_name,
        duration_in_hours=None if duration == "permanent" else int(duration),
    )
    log_operation(logger, "create_cluster", display_name=display_name, duration=duration)

    with reported_errors("create_cluster"):
        with console.status(f"Provisioning cluster [bold]{display_name}[/bold]..."):
            result = krucible_ctx.client.create_cluster(create_config, timeout=timeout)

        console.print(render_clusters([result.cluster], title="Cluster created"))
        if result.cluster.expires_at:
            console.print(f"Expires at: {result.cluster.expires_at.isoformat()}")

        if namespace:
            pods = result.kube_client.get_pods(namespace=namespace)
            console.print(f"\n[bold]Pods in {namespace}[/bold] ({len(pods)})")
            for pod in pods:
                console.print(f"  {pod.metadata.name}  [dim]{pod.status.phase}[/dim]")


@cli.command()
@click.argument("cluster_id")
@click.option("--format", type=click.Choice(["table", "json"]), default="table")
@click.pass_obj
def get(krucible_ctx: KrucibleContext, cluster_id: str, format: str) -> None:
    """Show a single cluster."""
    with reported_errors("get_cluster"):
        cluster = krucible_ctx.client.get_cluster(cluster_id)

    if format == "json":
        print_json([cluster])
    else:
        console.print(render_clusters([cluster], title=f"Cluster {cluster_id}"))


@cli.command(name="list")
@click.option("--format", type=click.Choice(["table", "json"]), default="table")
@click.pass_obj
def list_clusters(krucible_ctx: KrucibleContext, format: str) -> None:
    """List clusters of the account."""
    with reported_errors("get_clusters"):
        clusters = krucible_ctx.client.get_clusters()

    if format == "json":
        print_json(clusters)
    elif not clusters:
        console.print("[yellow]No clusters found[/yellow]")
    else:
        console.print(render_clusters(clusters, title=f"Krucible Clusters ({len(clusters)} total)"))


@cli.command()
@click.argument("cluster_id")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_obj
def delete(krucible_ctx: KrucibleContext, cluster_id: str, yes: bool) -> None:
    """Delete a cluster."""
    if not yes:
        click.confirm(f"Delete cluster {cluster_id}?", abort=True)

    log_operation(logger, "delete_cluster", cluster_id=cluster_id)
    with reported_errors("delete_cluster"):
        krucible_ctx.client.delete_cluster(cluster_id)

    console.print(f"[green]✓ Cluster {cluster_id} scheduled for deletion[/green]")


@cli.command()
@click.argument("cluster_id")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, writable=True),
    default=None,
    help="Write the kubeconfig to this file instead of stdout",
)
@click.pass_obj
def kubeconfig(krucible_ctx: KrucibleContext, cluster_id: str, output: str | None) -> None:
    """Download a cluster's kubeconfig."""
    with reported_errors("get_cluster_kubeconfig"):
        content = krucible_ctx.client.get_cluster_kubeconfig(cluster_id)

    if output is None:
        click.echo(content, nl=False)
        return

    output_path = Path(output).expanduser()
    fd = os.open(output_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "wb") as f:
        f.write(content)
    # O_CREAT only applies the mode to new files
    output_path.chmod(0o600)
    console.print(f"[green]✓ Kubeconfig written to {output_path}[/green]")


@cli.group()
def snapshot() -> None:
    """Manage cluster snapshots."""


@snapshot.command(name="create")
@click.argument("cluster_id")
@click.pass_obj
def create_snapshot(krucible_ctx: KrucibleContext, cluster_id: str) -> None:
    """Snapshot a cluster."""
    from krucible.core.models import CreateSnapshotConfig

    with reported_errors("create_snapshot"):
        created = krucible_ctx.client.create_snapshot(CreateSnapshotConfig(cluster_id=cluster_id))

    console.print(render_snapshots([created], title="Snapshot requested"))


@snapshot.command(name="get")
@click.argument("snapshot_id")
@click.pass_obj
def get_snapshot(krucible_ctx: KrucibleContext, snapshot_id: str) -> None:
    """Show a single snapshot."""
    with reported_errors("get_snapshot"):
        found = krucible_ctx.client.get_snapshot(snapshot_id)

    console.print(render_snapshots([found], title=f"Snapshot {snapshot_id}"))


@snapshot.command(name="list")
@click.option("--format", type=click.Choice(["table", "json"]), default="table")
@click.pass_obj
def list_snapshots(krucible_ctx: KrucibleContext, format: str) -> None:
    """List snapshots of the account."""
    with reported_errors("get_snapshots"):
        snapshots = krucible_ctx.client.get_snapshots()

    if format == "json":
        print_json(snapshots)
    elif not snapshots:
        console.print("[yellow]No snapshots found[/yellow]")
    else:
        console.print(render_snapshots(snapshots, title=f"Snapshots ({len(snapshots)} total)"))


if __name__ == "__main__":
    cli()
