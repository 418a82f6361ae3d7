"""Typer CLI for PMP-Engine."""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(name="pmp", help="PMP-Engine: confession tickets and lottery draws")
console = Console()


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Bind host [default: PMP_HOST]"),
    port: Optional[int] = typer.Option(None, help="Bind port [default: PMP_PORT]"),
):
    """Start the PMP-Engine API server."""
    import uvicorn
    from pmp_engine.app import create_app
    from pmp_engine.common.config import get_settings

    settings = get_settings()
    host = host or settings.host
    port = port or settings.port
    console.print(f"[bold green]Starting PMP-Engine on {host}:{port}[/bold green]")
    uvicorn.run(create_app(), host=host, port=port)


@app.command()
def generate(
    count: int = typer.Option(1, min=1, help="Number of codes to print"),
):
    """Generate ticket codes (offline, not stored)."""
    from pmp_engine.tickets.generator import generate_ticket_code

    for _ in range(count):
        console.print(f"[bold]{generate_ticket_code()}[/bold]")


@app.command()
def validate(
    code: str = typer.Argument(..., help="Ticket code to check"),
):
    """Check a ticket code's format offline."""
    from pmp_engine.tickets.validator import normalize_ticket_code, validate_ticket_code

    if validate_ticket_code(code):
        console.print(f"[bold green]VALID[/bold green] — {normalize_ticket_code(code)}")
    else:
        console.print("[bold red]INVALID_FORMAT[/bold red] — expected PMP-XXXX-XXXX")
        raise typer.Exit(1)


async def _with_session(fn):
    from pmp_engine.common.config import get_settings
    from pmp_engine.common.database import DatabaseManager

    db = DatabaseManager(get_settings())
    await db.init()
    await db.create_all()
    try:
        async with db.get_session() as session:
            return await fn(session)
    finally:
        await db.close()


@app.command("create-lottery")
def create_lottery(
    name: str = typer.Argument(..., help="Lottery name"),
):
    """Create a named lottery round."""
    from pmp_engine.common.exceptions import PMPError
    from pmp_engine.deps import get_lottery_service

    svc = get_lottery_service()
    try:
        lottery = asyncio.run(_with_session(lambda s: svc.create_lottery(s, name)))
    except PMPError as e:
        console.print(f"[bold red]{e.code}[/bold red] — {e.message}")
        raise typer.Exit(1)
    console.print(f"[bold green]{lottery.id}[/bold green] — {lottery.name}")


@app.command()
def draw(
    lottery_id: str = typer.Argument(..., help="Lottery ID"),
    count: int = typer.Option(10, min=1, help="Maximum number of new winners"),
    seed: Optional[str] = typer.Option(None, help="Seed for a reproducible draw"),
):
    """Draw winners for a lottery."""
    from pmp_engine.common.exceptions import PMPError
    from pmp_engine.deps import get_lottery_service

    svc = get_lottery_service()
    try:
        result = asyncio.run(
            _with_session(lambda s: svc.draw(s, lottery_id, count, seed=seed))
        )
    except PMPError as e:
        console.print(f"[bold red]{e.code}[/bold red] — {e.message}")
        raise typer.Exit(1)

    table = Table(title=f"{result.lottery.name}: {len(result.winners)} new winner(s)")
    table.add_column("Ticket")
    for winner in result.winners:
        table.add_row(winner["ticket_code"])
    console.print(table)


@app.command()
def health(
    url: str = typer.Option("http://localhost:8080", help="Server URL"),
):
    """Check PMP-Engine server health."""
    import httpx

    try:
        resp = httpx.get(f"{url}/health", timeout=5)
        data = resp.json()
        console.print(f"[bold green]{data['status']}[/bold green] — v{data['version']}")
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
