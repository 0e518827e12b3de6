"""Task queue CLI commands for impostor-py.

The ``tasks`` group is added to the ``litestar`` CLI by :class:`ImpostorCLIPlugin`
and is also installed on its own as the ``impostor-tasks`` script.
"""

from __future__ import annotations

import click
from litestar.plugins import CLIPluginProtocol


@click.group(name="tasks", help="Manage the background task queue (Huey).")
def tasks_group() -> None:
    """Manage the background task queue (Huey)."""


@tasks_group.command(name="run", help="Start the Huey task consumer.")
@click.option("--workers", "-w", default=1, help="Number of worker threads")
@click.option("--periodic/--no-periodic", default=True, help="Enable periodic tasks")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
def tasks_run(workers: int, periodic: bool, verbose: bool) -> None:
    """Start the Huey consumer that runs the expired-room sweep."""
    try:
        from huey.consumer import Consumer

        from impostor_py.core.tasks import get_huey, register_tasks

        huey = get_huey()
    except ImportError as e:
        raise click.ClickException(str(e)) from e

    if periodic:
        register_tasks()
        click.secho("Registered periodic tasks", fg="green")

    click.secho(f"Starting Huey consumer with {workers} workers...", fg="cyan")
    click.echo("Press Ctrl+C to stop\n")
    try:
        Consumer(huey, workers=workers, periodic=periodic, verbose=verbose).run()
    except KeyboardInterrupt:
        click.secho("\nConsumer stopped", fg="yellow")


@tasks_group.command(name="sweep", help="Delete expired rooms from the database now.")
@click.option("--database-url", default=None, help="Database URL (defaults to DATABASE_URL)")
def tasks_sweep(database_url: str | None) -> None:
    """Run the expired-room sweep once, outside the consumer."""
    from impostor_py.core.tasks import run_sweep_expired_rooms

    result = run_sweep_expired_rooms(database_url)
    click.echo(f"Deleted {result['deleted']} expired rooms")


class ImpostorCLIPlugin(CLIPluginProtocol):
    """CLI plugin that adds the ``tasks`` command group.

    Subcommands:
    - run: Start the Huey task consumer
    - sweep: Run the expired-room sweep now
    """

    def on_cli_init(self, cli: click.Group) -> None:
        """Register the tasks command group."""
        cli.add_command(tasks_group)
