"""Typer CLI for tenantchat."""

import asyncio

import typer
from rich.console import Console

app = typer.Typer(name="tenantchat", help="tenantchat: multi-tenant support chat backend")
console = Console()


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind host"),
    port: int = typer.Option(8080, help="Bind port"),
):
    """Start the tenantchat API server."""
    import uvicorn
    from tenantchat.app import create_app

    console.print(f"[bold green]Starting tenantchat on {host}:{port}[/bold green]")
    uvicorn.run(create_app(), host=host, port=port)


@app.command()
def bootstrap(
    name: str = typer.Argument(..., help="Display name of the superadmin"),
    phone: str = typer.Argument(..., help="Phone number of the superadmin"),
):
    """Create a superadmin account directly in the database."""
    from tenantchat.common.exceptions import TenantChatError
    from tenantchat.deps import get_account_service, get_db

    async def _create():
        db = get_db()
        await db.init()
        await db.create_all()
        try:
            async with db.get_session() as session:
                return await get_account_service().create_account(
                    session, name=name, phone_number=phone, role="superadmin",
                )
        finally:
            await db.close()

    try:
        account = asyncio.run(_create())
    except TenantChatError as e:
        console.print(f"[bold red]{e.code}[/bold red] - {e.message}")
        raise typer.Exit(1)
    console.print(f"[bold green]Created superadmin[/bold green] {account.id}")


@app.command()
def health(
    url: str = typer.Option("http://localhost:8080", help="Server URL"),
):
    """Check tenantchat server health."""
    import httpx

    try:
        resp = httpx.get(f"{url}/health", timeout=5)
        data = resp.json()
        console.print(f"[bold green]{data['status']}[/bold green] - v{data['version']}")
    except (httpx.HTTPError, ValueError, KeyError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
