"""CLI entry point for deploy-notifier.

Commands:
- serve: run the Heroku webhook receiver
- check: verify configuration
- notify: announce a deploy range by hand
"""

import asyncio
import logging
import sys
from dataclasses import replace

import click
import uvicorn
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .config import Config
from .errors import PipelineError
from .pipeline import DeployEvent, run_pipeline
from .webhook import create_app

console = Console()


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
        force=True,
    )


def _load_config() -> Config:
    try:
        return Config()
    except ValueError as e:
        console.print(f"[red]✗ Invalid configuration: {e}")
        sys.exit(1)


def _exit_on_issues(config: Config) -> None:
    issues = config.validate()
    if issues:
        for issue in issues:
            console.print(f"[red]✗ {issue}")
        console.print("\n[yellow]Copy .env.example to .env and fill in your credentials.")
        sys.exit(1)


@click.group()
def cli():
    """deploy-notifier: tell authors on Slack when their commits ship to Heroku."""
    pass


@cli.command()
@click.option("--host", default="0.0.0.0", help="Interface to bind.")
@click.option("--port", type=int, default=None, help="Port to bind. Default: from PORT or 8000")
def serve(host, port):
    """Run the Heroku webhook receiver."""
    config = _load_config()
    if port:
        config = replace(config, port=port)
    _exit_on_issues(config)
    _configure_logging(config.log_level)

    console.print(
        Panel(
            "[bold cyan]Heroku Deploy Notifier[/bold cyan]\n"
            f"Listening on {host}:{config.port}",
            border_style="cyan",
        )
    )
    uvicorn.run(
        create_app(config),
        host=host,
        port=config.port,
        log_level="debug" if config.debug else config.log_level.lower(),
    )


@cli.command()
def check():
    """Verify configuration."""
    config = _load_config()
    issues = config.validate()

    if issues:
        console.print("[bold red]Configuration issues found:\n")
        for issue in issues:
            console.print(f"  [red]✗ {issue}")
        sys.exit(1)

    console.print("[bold green]✓ Configuration looks good!")
    table = Table(title="GitHub → Slack users", border_style="cyan")
    table.add_column("GitHub ID", justify="right")
    table.add_column("Slack ID")
    for github_id, slack_id in config.user_directory.items():
        table.add_row(str(github_id), slack_id)
    console.print(f"  GitHub App: {config.github_app_id} (installation {config.github_app_install_id})")
    console.print(f"  Port: {config.port}")
    console.print(table)


@cli.command()
@click.option("--org", required=True, help="GitHub organization or user.")
@click.option("--repo", required=True, help="GitHub repository name.")
@click.option("--base", required=True, help="Previously deployed revision.")
@click.option("--head", required=True, help="Newly deployed revision.")
@click.option("--app-name", required=True, help="Heroku app name.")
@click.option("--release", required=True, help="Release identifier, e.g. v42.")
def notify(org, repo, base, head, app_name, release):
    """Send deploy notifications for a revision range."""
    config = _load_config()
    _exit_on_issues(config)
    _configure_logging(config.log_level)

    event = DeployEvent(
        app_name=app_name,
        org=org,
        repo=repo,
        base_revision=base,
        head_revision=head,
        release_id=release,
    )
    try:
        result = asyncio.run(run_pipeline(event, config))
    except PipelineError as e:
        console.print(f"[red]✗ {e}")
        sys.exit(1)

    console.print(
        f"[green]✓ {result.commit_count} commits from {result.author_count} authors; "
        f"notified {len(result.notified)}, skipped {len(result.skipped)}"
    )


if __name__ == "__main__":
    cli()
