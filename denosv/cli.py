"""CLI entrypoint for deno-sv."""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from denosv import __version__
from denosv.config import ConfigError, load_config
from orchestrator import ProvisioningRunner
from provisioning.errors import ProvisioningError
from schemas.provision_state import FeatureSet

app = typer.Typer(
    name="deno-sv",
    help="A CLI tool to setup Svelte/SvelteKit on Deno until official support.",
    add_completion=False,
)
console = Console()


def show_error(message: str) -> None:
    """Print an error in the tool's format."""
    console.print(f"[red]error: {escape(message)}[/red]")


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"deno-sv {__version__}")
        raise typer.Exit()


def confirm_project_root(directory: Path, confirm: bool) -> Path:
    """Resolve the project root, asking the user when ``confirm`` is set."""
    root = directory.resolve()
    if not confirm:
        return root
    if not typer.confirm(f"Setup the dir as svelte project: {root}", default=True):
        raise ProvisioningError("cancelled")
    return root


@app.command()
def init(
    vitest: bool = typer.Option(
        False,
        "--vitest",
        help="Enable vitest setup.",
    ),
    tailwind: bool = typer.Option(
        False,
        "--tailwind",
        help="Enable tailwindcss setup.",
    ),
    confirm: bool = typer.Option(
        True,
        "--confirm/--no-confirm",
        help="Ask before setting up the directory.",
    ),
    directory: Path = typer.Option(
        Path("."),
        "--dir",
        "-d",
        help="Project directory (default: current directory)",
    ),
    install: Optional[bool] = typer.Option(
        None,
        "--install/--no-install",
        help="Install dependencies with deno add (default: from config)",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to deno-sv.toml",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logging",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Set up a Svelte/SvelteKit project for Deno.

    Examples:
        deno-sv
        deno-sv --vitest --tailwind
        deno-sv --no-confirm --dir ./my-app --no-install
    """
    try:
        cfg = load_config(config_path)
    except ConfigError as e:
        show_error(str(e))
        raise typer.Exit(1)

    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, cfg.log_level.upper(), logging.WARNING),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )

    try:
        root = confirm_project_root(directory, confirm)
        runner = ProvisioningRunner(cfg, console=console)
        state = runner.run(root, FeatureSet(vitest=vitest, tailwind=tailwind), install=install)
    except ProvisioningError as e:
        show_error(str(e))
        raise typer.Exit(1)
    except OSError as e:
        # Filesystem failures outside the copy and activation stages
        show_error(f"{e.strerror or e}: {e.filename}" if e.filename else str(e))
        raise typer.Exit(1)

    summary = state.summary()
    console.print(f"\n[bold green]Project ready:[/bold green] {state.project_root}")
    console.print(
        f"[dim]{summary['files_copied']} files copied, "
        f"{summary['files_activated']} files activated, "
        f"{summary['dependencies_installed']} dependencies installed[/dim]"
    )
    if state.features.vitest:
        console.print("  deno task test")
    console.print("  deno task dev")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
