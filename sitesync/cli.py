"""Command-line interface for sitesync.

This module defines the CLI commands using the Click framework.

Commands:
- build: Build the site and upload changed files.
- hash: Print the change-detection digest of local files.
"""

from __future__ import annotations

from pathlib import Path

import click

from . import __version__
from .config import ConfigError, load_config
from .hashing import DEFAULT_ALGORITHM, Hasher
from .log import configure_logging


@click.group()
@click.version_option(version=__version__, prog_name="sitesync")
def cli():
    """Build a static site from Markdown and publish changed files to S3."""


@cli.command()
@click.option("--markdown-dir", type=click.Path(path_type=Path), help="Markdown source directory.")
@click.option("--css-dir", type=click.Path(path_type=Path), help="CSS source directory.")
@click.option("--output-dir", type=click.Path(path_type=Path), help="Build output directory.")
@click.option("--bucket", help="Destination S3 bucket.")
@click.option("--region", help="Bucket region.")
@click.option("--endpoint-url", help="Custom S3 endpoint, e.g. for MinIO.")
@click.option(
    "--disable-upload",
    is_flag=True,
    help="Build without pushing anything to the bucket.",
)
@click.option(
    "--no-local-output",
    is_flag=True,
    help="Upload directly without writing the build directory.",
)
@click.option("--concurrency", type=int, help="Maximum concurrent uploads.")
@click.option("--timeout", type=float, help="Abort the run after this many seconds.")
@click.option(
    "--fail-on-upload-error",
    is_flag=True,
    help="Exit non-zero when any upload fails.",
)
@click.option("-v", "--verbose", is_flag=True, help="Log debug output.")
def build(
    markdown_dir: Path | None,
    css_dir: Path | None,
    output_dir: Path | None,
    bucket: str | None,
    region: str | None,
    endpoint_url: str | None,
    disable_upload: bool,
    no_local_output: bool,
    concurrency: int | None,
    timeout: float | None,
    fail_on_upload_error: bool,
    verbose: bool,
):
    """Build the site and upload files whose content changed."""
    configure_logging(verbose)
    project_root = Path.cwd()
    from .build import BuildError, build_site
    from .store import create_store

    overrides = {
        "markdown_dir": markdown_dir,
        "css_dir": css_dir,
        "output_dir": output_dir,
        "bucket": bucket,
        "region": region,
        "endpoint_url": endpoint_url,
        "upload": False if disable_upload else None,
        "local_output": False if no_local_output else None,
        "upload_concurrency": concurrency,
        "timeout": timeout,
        "fail_on_upload_error": True if fail_on_upload_error else None,
    }
    try:
        config = load_config(project_root, overrides)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    if config.upload and not config.bucket:
        raise click.UsageError("--bucket is required unless --disable-upload is set")

    try:
        result = build_site(config, create_store(config))
    except BuildError as exc:
        # Display user-friendly error message
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        click.echo(click.style(f"  File: {_display_path(exc.source_path, project_root)}", fg="yellow"), err=True)
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
        raise SystemExit(1) from None

    # Disabled uploads go through a no-op store, so nothing was actually sent.
    uploaded_label = "uploaded" if config.upload else "would upload"
    click.echo(
        f"Built {len(result.pages)} pages and {len(result.stylesheets)} stylesheets, "
        f"{uploaded_label} {len(result.uploaded)}, unchanged {len(result.skipped)}"
    )
    if result.failed_uploads:
        click.echo(
            click.style(f"{len(result.failed_uploads)} uploads failed:", fg="yellow"),
            err=True,
        )
        for key, error in result.failed_uploads:
            click.echo(f"  {key}: {error}", err=True)
        if config.fail_on_upload_error:
            raise SystemExit(1)


@cli.command(name="hash")
@click.argument(
    "files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.option("--algorithm", default=DEFAULT_ALGORITHM, show_default=True, help="hashlib algorithm.")
def hash_files(files: tuple[Path, ...], algorithm: str):
    """Print the change-detection digest of local files."""
    try:
        hasher = Hasher(algorithm)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--algorithm") from exc
    for path in files:
        with open(path, "rb") as f:
            digest, _ = hasher.digest_stream(f)
        click.echo(f"{digest}  {path}")


def _display_path(path: Path, project_root: Path) -> Path:
    try:
        return path.relative_to(project_root)
    except ValueError:
        return path


def main():
    """Entry point for the CLI application."""
    cli()
