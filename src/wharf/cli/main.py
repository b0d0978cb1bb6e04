#!/usr/bin/env python3
"""
Wharf CLI - Main entry point.

Usage:
    wharf [OPTIONS] COMMAND [ARGS]...

Manage container engine images and networks from the terminal.
"""

import os
from datetime import datetime, timezone
from typing import Any, Optional

import typer
from rich.table import Table

from . import __version__
from ..daemon.api import Response
from .async_typer import AsyncTyper
from .client import get_api, get_principal
from .decorators import require_engine
from .output import out


# Create the main Typer app
app = AsyncTyper(
    name="wharf",
    help="Container engine image and network management",
    add_completion=True,
    no_args_is_help=True,
)
images_app = AsyncTyper(help="Manage images", no_args_is_help=True)
networks_app = AsyncTyper(help="Manage networks", no_args_is_help=True)
app.add_typer(images_app, name="images")
app.add_typer(networks_app, name="networks")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        out.info(f"wharf version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """
    Wharf - list, prune, remove, tag and wire up engine resources.
    """
    pass


def _unwrap(response: Response) -> Any:
    """Return the response body, or report the error and exit."""
    if not response.ok:
        body = response.body
        message = body.get("error", body) if isinstance(body, dict) else body
        out.error(str(message))
        raise typer.Exit(1)
    return response.body


def _short_id(resource_id: str) -> str:
    return resource_id.split(":", 1)[-1][:12]


def _human_size(size: int | None) -> str:
    if size is None:
        return ""
    value = float(size)
    for unit in ("B", "kB", "MB", "GB"):
        if value < 1000:
            return f"{value:.1f}{unit}" if unit != "B" else f"{int(value)}B"
        value /= 1000
    return f"{value:.1f}TB"


def _created(timestamp: int | None) -> str:
    if not timestamp:
        return ""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d")


# -----------------------------------------------------------------------------
# Images
# -----------------------------------------------------------------------------


@images_app.command(name="ls")
@require_engine
async def images_ls(
    dangling: bool = typer.Option(False, "--dangling", "-d", help="Only show untagged images"),
    all_images: bool = typer.Option(False, "--all", "-a", help="Include intermediate layers"),
) -> None:
    """List images."""
    query = {"dangling": str(dangling).lower(), "all": str(all_images).lower()}
    images = _unwrap(await get_api().list_images(get_principal(), query))

    if not images:
        out.dim("No images found.")
        return

    table = Table(title="Images")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Tags", style="green")
    table.add_column("Size", style="yellow", justify="right")
    table.add_column("Created", style="dim")

    for image in images:
        tags = image.get("RepoTags") or ["<none>"]
        table.add_row(
            _short_id(image["Id"]),
            ", ".join(tags),
            _human_size(image.get("Size")),
            _created(image.get("Created")),
        )

    out.console.print(table)


@images_app.command(name="rm")
@require_engine
async def images_rm(
    image_id: str = typer.Argument(..., help="Image ID or reference to remove"),
    force: bool = typer.Option(False, "--force", "-f", help="Remove even if in use"),
    prune_children: bool = typer.Option(
        False, "--prune-children", help="Also delete untagged parent images",
    ),
) -> None:
    """Remove an image."""
    body = {"force": force, "prune_children": prune_children}
    items = _unwrap(await get_api().remove_image(get_principal(), image_id, body))
    for item in items:
        for action, ref in item.items():
            out.dim(f"{action}: {ref}")
    out.success(f"Image '{image_id}' removed")


@images_app.command(name="tag")
@require_engine
async def images_tag(
    image_id: str = typer.Argument(..., help="Image ID to tag"),
    tag: str = typer.Argument(..., help="New reference, e.g. myrepo/app:1.0"),
) -> None:
    """Tag an image."""
    message = _unwrap(await get_api().tag_image(get_principal(), image_id, {"tag": tag}))
    out.success(message)


@images_app.command(name="prune")
@require_engine
async def images_prune() -> None:
    """Remove dangling images."""
    report = _unwrap(await get_api().prune_images(get_principal()))
    deleted = report.get("ImagesDeleted") or []
    out.success(
        f"Pruned {len(deleted)} image record(s), "
        f"reclaimed {_human_size(report.get('SpaceReclaimed', 0))}"
    )


# -----------------------------------------------------------------------------
# Networks
# -----------------------------------------------------------------------------


@networks_app.command(name="ls")
@require_engine
async def networks_ls() -> None:
    """List networks."""
    networks = _unwrap(await get_api().list_networks(get_principal()))

    if not networks:
        out.dim("No networks found.")
        return

    table = Table(title="Networks")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="green")
    table.add_column("Driver", style="yellow")
    table.add_column("Scope", style="magenta")
    table.add_column("Internal", style="dim")

    for network in networks:
        table.add_row(
            _short_id(network["Id"]),
            network.get("Name", ""),
            network.get("Driver", ""),
            network.get("Scope", ""),
            "yes" if network.get("Internal") else "no",
        )

    out.console.print(table)


@networks_app.command(name="rm")
@require_engine
async def networks_rm(
    network_id: str = typer.Argument(..., help="Network ID or name to remove"),
) -> None:
    """Remove a network."""
    body = _unwrap(await get_api().remove_network(get_principal(), network_id))
    out.success(body["message"])


@networks_app.command(name="prune")
@require_engine
async def networks_prune() -> None:
    """Remove unused networks."""
    report = _unwrap(await get_api().prune_networks(get_principal()))
    deleted = report.get("NetworksDeleted") or []
    if not deleted:
        out.dim("No unused networks.")
        return
    for name in deleted:
        out.dim(f"Deleted: {name}")
    out.success(f"Pruned {len(deleted)} network(s)")


@networks_app.command(name="connect")
@require_engine
async def networks_connect(
    network_id: str = typer.Argument(..., help="Network ID or name"),
    container_id: str = typer.Argument(..., help="Container ID or name"),
) -> None:
    """Connect a container to a network."""
    body = {"container_id": container_id}
    result = _unwrap(await get_api().connect_network(get_principal(), network_id, body))
    out.success(result["message"])


@networks_app.command(name="disconnect")
@require_engine
async def networks_disconnect(
    network_id: str = typer.Argument(..., help="Network ID or name"),
    container_id: str = typer.Argument(..., help="Container ID or name"),
    force: bool = typer.Option(False, "--force", "-f", help="Force the disconnect"),
) -> None:
    """Disconnect a container from a network."""
    body = {"container_id": container_id, "force": force}
    result = _unwrap(await get_api().disconnect_network(get_principal(), network_id, body))
    out.success(result["message"])


@networks_app.command(name="create")
@require_engine
async def networks_create(
    name: str = typer.Argument(..., help="Name of the network to create"),
    driver: str = typer.Option("bridge", "--driver", "-d", help="Network driver"),
) -> None:
    """Create an internal network."""
    created = _unwrap(await get_api().create_network(get_principal(), {"name": name, "driver": driver}))
    if created.get("Warning"):
        out.warning(created["Warning"])
    out.success(f"Network '{name}' created ({_short_id(created['Id'])})")


def cli() -> None:
    """CLI entry point for setuptools."""
    prog_name = os.environ.get("WHARF_PROG_NAME", "wharf")
    app(prog_name=prog_name)


if __name__ == "__main__":
    cli()
