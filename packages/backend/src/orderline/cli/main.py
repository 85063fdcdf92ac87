"""Orderline CLI — run the server and peek at the kitchen from a terminal.

Usage:
    orderline serve                      # Run the API + WebSocket server
    orderline health                     # Server and dependency status
    orderline orders                     # All orders, newest first
    orderline orders --view chef         # What a chef screen would show
    orderline stats                      # Connected waiters and chefs
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import sys

import click
import httpx

from orderline import __version__
from orderline.config import settings

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _api_url() -> str:
    return settings.api_url.rstrip("/")


def _client() -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the Orderline backend."""
    return httpx.AsyncClient(base_url=_api_url(), timeout=10.0)


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


async def _get_json(path: str, **params):
    try:
        async with _client() as c:
            r = await c.get(path, params=params or None)
            r.raise_for_status()
            return r.json()
    except httpx.HTTPError as e:
        click.secho(f"Request to {_api_url()}{path} failed: {e}", fg="red", err=True)
        sys.exit(1)


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table.

    columns: list of (header, dict_key, width)
    """
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        line = "  ".join(str(row.get(k, "—"))[:w].ljust(w) for _, k, w in columns)
        click.echo(line)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="orderline")
def main():
    """Orderline — real-time kitchen order relay."""


@main.command()
@click.option("--host", default=None, help="Bind address (default: ORDERLINE_HOST)")
@click.option("--port", default=None, type=int, help="Port (default: ORDERLINE_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: str | None, port: int | None, reload: bool):
    """Run the HTTP + WebSocket server with uvicorn."""
    import uvicorn

    uvicorn.run(
        "orderline.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


@main.command()
def health():
    """Show server and dependency health."""
    data = _run(_get_json("/api/v1/health"))
    color = "green" if data.get("status") == "healthy" else "yellow"
    click.secho(f"{data.get('status', 'unknown')} (v{data.get('version', '?')})", fg=color, bold=True)
    for key in ("server", "postgres", "redis"):
        click.echo(f"  {key:<9} {data.get(key, '—')}")


@main.command()
@click.option(
    "--view",
    type=click.Choice(["all", "chef", "waiter"]),
    default="all",
    help="Apply a role's snapshot filter",
)
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
def orders(view: str, as_json: bool):
    """List orders, newest first."""
    data = _run(_get_json("/api/v1/orders", view=view))
    if as_json:
        click.echo(json.dumps(data, indent=2, default=str))
        return
    if not data:
        click.echo("No orders.")
        return

    rows = [
        {
            "id": f"#{o['id']}",
            "table": o["tableNumber"],
            "status": o["status"],
            "items": ", ".join(o["items"]),
            "created": o["createdAt"][:19].replace("T", " "),
        }
        for o in data
    ]
    _print_table(rows, [
        ("ID", "id", 6),
        ("TABLE", "table", 5),
        ("STATUS", "status", 10),
        ("CREATED", "created", 19),
        ("ITEMS", "items", 40),
    ])
    pending = sum(1 for o in data if o["status"] == "PENDING")
    if pending:
        click.secho(f"\n{pending} pending", fg="yellow")


@main.command()
def stats():
    """Show how many waiters and chefs are connected."""
    data = _run(_get_json("/api/v1/ws/stats"))
    click.echo(f"waiters: {data['waiters']}")
    click.echo(f"chefs:   {data['chefs']}")


if __name__ == "__main__":
    main()
