#!/usr/bin/env python3
"""
ReelTube CLI

Command-line interface for the ReelTube media API.

Usage:
    reeltube upload FILE             # Upload a photo or video
    reeltube upload FILE -n NAME     # Upload under a different name
    reeltube whoami                  # Verify the API key
    reeltube version                 # Show version info

The API key comes from --api-key or the REELTUBE_API_KEY environment
variable (a .env file in the working directory is also read).
"""

import logging
import sys
from pathlib import Path

import click
import httpx
from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn
from rich.panel import Panel
from rich.logging import RichHandler

from . import version_info
from .api import ReeltubeClient
from .config import Config, load_config
from .engine import UploadEngine
from .errors import APIError, ConfigError, ValidationError
from .file import FileInspector
from .transfer.progress import UploadProgress, format_eta, format_parts

console = Console()
err_console = Console(stderr=True)


def setup_logging(verbose: bool = False):
    """Configure logging with rich output."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_time=False, show_path=False)]
    )
    # httpx logs every request at INFO
    logging.getLogger('httpx').setLevel(logging.DEBUG if verbose else logging.WARNING)


def fail(ctx: click.Context, message: str):
    """Print an error to stderr and exit with status 1."""
    err_console.print(f"[red]Error: {escape(message)}[/red]", soft_wrap=True)
    ctx.exit(1)


def get_config(ctx: click.Context) -> Config:
    """Configuration for commands that talk to the API."""
    config = ctx.obj['config']
    try:
        config.require_api_key()
    except ConfigError as e:
        fail(ctx, str(e))
    return config


@click.group()
@click.option('-k', '--api-key', default=None,
              help='API key for authentication (required unless REELTUBE_API_KEY is set)')
@click.option('-u', '--base-url', default=None,
              help='Base URL of the API (default: https://api.reel.tube)')
@click.option('-d', '--debug', is_flag=True, help='Enable debug mode')
@click.option('--config', 'config_path', default=None,
              type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help='JSON config file')
@click.pass_context
def cli(ctx, api_key, base_url, debug, config_path):
    """ReelTube is a CLI for interacting with the ReelTube API."""
    ctx.ensure_object(dict)
    try:
        config = load_config(
            config_path,
            api_key=api_key,
            base_url=base_url,
            debug=True if debug else None,
        )
    except ConfigError as e:
        fail(ctx, str(e))

    setup_logging(config.debug)
    ctx.obj['config'] = config


@cli.command()
@click.argument('file_path')
@click.option('--name', '-n', default=None, help='Upload name (default: file name)')
@click.option('--concurrency', '-c', default=None, type=click.IntRange(min=1),
              help='Parallel part uploads (default: number of CPUs)')
@click.pass_context
def upload(ctx, file_path, name, concurrency):
    """Upload a media file to ReelTube."""
    config = get_config(ctx)

    try:
        inspected = FileInspector().inspect(file_path)
    except ValidationError as e:
        fail(ctx, str(e))

    console.print(f"File to upload: {escape(str(inspected.path))}", soft_wrap=True)
    if name:
        console.print(f"Upload name override: {escape(name)}", soft_wrap=True)

    # Tests inject an httpx transport through the context object
    transport = ctx.obj.get('transport')

    with ReeltubeClient(config, transport=transport) as client, \
            httpx.Client(timeout=config.timeout, transport=transport) as http:
        engine = UploadEngine(
            client,
            concurrency=concurrency or config.concurrency,
            http=http,
        )

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("{task.fields[parts]}"),
            TextColumn("{task.fields[eta]}"),
            console=console,
        ) as progress:
            task = progress.add_task("Uploading...", total=None, parts='', eta='')

            # Progress callback
            def update_progress(p: UploadProgress):
                progress.update(
                    task,
                    total=p.total_parts,
                    completed=p.completed_parts,
                    parts=format_parts(p),
                    eta=format_eta(p.eta_seconds),
                )

            try:
                outcome = engine.run(inspected, name, update_progress)
            except KeyboardInterrupt:
                fail(ctx, 'upload interrupted')

    if not outcome.success:
        fail(ctx, f"upload failed during {outcome.stage}: {outcome.reason}")

    console.print(Panel.fit(
        f"[bold green]File uploaded successfully[/bold green]\n\n"
        f"Name: [cyan]{escape(outcome.file_name)}[/cyan]\n"
        f"Size: [yellow]{format_size(outcome.file_size)}[/yellow]\n"
        f"Parts: [yellow]{outcome.part_count}[/yellow]\n"
        f"Media upload: [green]{escape(outcome.media_upload_id or '')}[/green]",
        title="Upload"
    ))


@cli.command()
@click.pass_context
def whoami(ctx):
    """Ping the ReelTube API to verify authentication."""
    config = get_config(ctx)

    try:
        with ReeltubeClient(config, transport=ctx.obj.get('transport')) as client:
            data = client.me()
    except APIError as e:
        fail(ctx, str(e))

    console.print(escape(data.profile.handle))


cli.add_command(whoami, name='me')


@cli.command()
def version():
    """Print the version number of ReelTube CLI."""
    console.print(version_info())


def format_size(bytes_count: int) -> str:
    """Format bytes as human-readable size."""
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if bytes_count < 1024:
            return f"{bytes_count:.1f} {unit}"
        bytes_count /= 1024
    return f"{bytes_count:.1f} PB"


def main():
    cli(obj={})


if __name__ == '__main__':
    sys.exit(main())
