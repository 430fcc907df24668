import json
import logging
import signal
import subprocess  # noqa: S404
import sys
import threading
from enum import Enum
from functools import partial
from pathlib import Path

import typer
import yaml
from rich.color import ColorSystem
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from aci_compose.app_config import load_app_config
from aci_compose.app_state import AppState
from aci_compose.libs.classes.colors import ColorCycle
from aci_compose.libs.classes.log_fetcher import AzCliLogFetcher
from aci_compose.libs.errors import AciComposeError
from aci_compose.libs.functions.convert import (
    container_group_to_containers,
    to_container_group,
)
from aci_compose.libs.functions.load_project import load_project
from aci_compose.libs.functions.stream_logs import stream_logs
from aci_compose.libs.models.container_group import ContainerGroup

app = typer.Typer(
    no_args_is_help=True,
)
console = Console(stderr=True)


def _fail(error: Exception) -> typer.Exit:
    console.print(f"[red][bold]Error:[/bold] {error}[/red]")
    return typer.Exit(code=1)


@app.callback()
def main(
    ctx: typer.Context,
    config_paths: list[Path] = typer.Option(
        [
            Path("./aci-compose.yaml"),
            Path("./aci-compose.yml"),
        ],
        "--config",
        "-c",
        help="Path to the application configuration file.",
    ),
    verbose: bool = typer.Option(
        False,  # noqa: FBT003
        "--verbose",
        "-v",
        help="Enable debug logging.",
    ),
):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    ctx.obj = AppState(
        app_config=load_app_config(tuple(config_paths)),
    )


class OutputFormat(Enum):
    YAML = "yaml"
    JSON = "json"


@app.command()
def convert(
    ctx: typer.Context,
    *,
    files: list[Path] = typer.Option(
        [],
        "--file",
        "-f",
        help="Compose files to load, merged in order.",
    ),
    project_name: str | None = typer.Option(
        None,
        "--project-name",
        "-p",
        help="Project name, defaults to the compose 'name' or the directory name.",
    ),
    output_format: OutputFormat = typer.Option(
        OutputFormat.YAML,
        "--format",
        help="Output format.",
    ),
):
    """Print the container group generated from the compose project."""
    app_state: AppState = ctx.obj
    app_config = app_state.app_config

    try:
        project = load_project(
            files or app_config.compose_files,
            name=project_name or app_config.project_name,
            data=app_config.data,
        )
        group = to_container_group(app_config.context, project)
    except AciComposeError as e:
        raise _fail(e) from e

    content = group.model_dump(mode="json", by_alias=True, exclude_none=True)

    result: str
    match output_format:
        case OutputFormat.JSON:
            result = json.dumps(content, indent=2) + "\n"
        case OutputFormat.YAML:
            result = yaml.dump(content, width=float("inf"), sort_keys=False)

    sys.stdout.write(result)
    sys.stdout.flush()


@app.command()
def ps(
    group_file: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        help="Container group JSON, as printed by 'az container show'.",
    ),
):
    """List the containers of a container group, without the DNS sidecar."""
    try:
        group = ContainerGroup.model_validate_json(group_file.read_text(encoding="utf-8"))
        views = container_group_to_containers(group)
    except (AciComposeError, ValueError) as e:
        raise _fail(e) from e

    table = Table("CONTAINER ID", "IMAGE", "COMMAND", "STATUS", "PORTS")
    for view in views:
        table.add_row(
            view.id,
            view.image,
            view.command,
            view.status,
            ", ".join(
                f"{p.host_ip}:{p.host_port}->{p.container_port}/{p.protocol}"
                for p in view.ports
            ),
        )
    Console().print(table)


@app.command()
def logs(
    ctx: typer.Context,
    *,
    name: str | None = typer.Option(
        None,
        "--name",
        "-n",
        help="Container group name, defaults to the compose project name.",
    ),
    files: list[Path] = typer.Option(
        [],
        "--file",
        "-f",
        help="Compose files used to find the project name.",
    ),
):
    """Follow the logs of every container of the group until interrupted."""
    app_state: AppState = ctx.obj
    app_config = app_state.app_config

    cancel = threading.Event()
    previous_handler = signal.signal(signal.SIGINT, lambda *_: cancel.set())
    colors = ColorCycle(
        color_system=ColorSystem.STANDARD if sys.stdout.isatty() else None
    )

    try:
        stream_logs(
            AzCliLogFetcher(app_config.context),
            sys.stdout,
            cancel,
            name=name or app_config.project_name,
            project_loader=partial(
                load_project, files or app_config.compose_files, data=app_config.data
            ),
            colors=colors,
        )
    except (AciComposeError, subprocess.CalledProcessError, OSError) as e:
        raise _fail(e) from e
    finally:
        signal.signal(signal.SIGINT, previous_handler or signal.SIG_DFL)
