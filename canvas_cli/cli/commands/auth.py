"""Authentication commands for canvas-cli."""

import datetime

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from canvas_cli.core.auth import (
    AuthError,
    OAuthConfig,
    OAuthFlow,
    OAuthMode,
    OAuthToken,
    TokenStore,
    create_token_store,
)
from canvas_cli.core.config import (
    AuthConfig,
    AuthSettings,
    instance_name_from_url,
    normalize_url,
    sanitize_instance_name,
)

app = typer.Typer(help="Authentication management")


def _token_store(settings: AuthConfig) -> TokenStore:
    return create_token_store(
        settings.token_storage,
        settings.config_dir,
        keyring_service=settings.keyring_service,
    )


def _format_expiry(token: OAuthToken) -> str:
    if token.expiry is None:
        return "Never"
    return token.expiry.astimezone(datetime.timezone.utc).isoformat(timespec="seconds")


def _error_panel(console: Console, message: str, error: Exception, title: str) -> None:
    console.print(
        Panel(
            f"[red]{message}[/red]\n\nError: {error}",
            title=title,
            border_style="red",
        )
    )


@app.command()
def login(
    url: str = typer.Argument(..., help="Canvas instance URL (e.g., canvas.example.edu)"),
    instance: str = typer.Option(
        "", "--instance", "-i", help="Instance name (defaults to the URL hostname)"
    ),
    mode: str = typer.Option(None, "--mode", "-m", help="OAuth mode: auto, local, oob"),
    client_id: str = typer.Option("", "--client-id", help="OAuth client ID"),
    client_secret: str = typer.Option("", "--client-secret", help="OAuth client secret"),
    port: int = typer.Option(None, "--port", "-p", help="Local callback port"),
    scope: list[str] = typer.Option([], "--scope", help="OAuth scope (repeatable)"),
) -> None:
    """Authenticate with a Canvas instance using OAuth.

    A browser window opens for you to authorize the CLI. When no browser
    is available, paste the authorization code into the terminal instead.

    Example:
        canvas auth login canvas.example.edu --client-id 10000
    """
    console = Console()

    try:
        settings = AuthSettings.load()
        base_url = normalize_url(url)
        name = sanitize_instance_name(instance) if instance else instance_name_from_url(url)
        if not name:
            console.print("[red]Error: Instance name is required[/red]")
            raise typer.Exit(1) from None

        console.print(f"[cyan]Logging in to Canvas instance: {base_url}[/cyan]")
        console.print(f"Instance name: {name}\n")

        oauth_mode = OAuthMode.parse(mode or settings.oauth_mode)

        if not client_id:
            client_id = typer.prompt("Enter OAuth Client ID").strip()
        if not client_secret:
            client_secret = typer.prompt("Enter OAuth Client Secret", hide_input=True).strip()
        if not client_secret:
            console.print("[red]Error: Client secret is required when using OAuth[/red]")
            raise typer.Exit(1) from None

        config = OAuthConfig(
            base_url=base_url,
            client_id=client_id,
            client_secret=client_secret,
            scopes=tuple(scope),
            mode=oauth_mode,
            callback_port=port or settings.callback_port,
            timeout=settings.oauth_timeout,
        )
        with OAuthFlow(config) as flow:
            token = flow.authenticate()
        _token_store(settings).save(name, token)

    except typer.Exit:
        raise
    except AuthError as e:
        _error_panel(console, "Authentication failed.", e, "Authentication Error")
        raise typer.Exit(1) from None

    console.print(
        Panel(
            f"[green]Successfully authenticated with {name}[/green]\n\n"
            f"URL: {base_url}\n"
            f"Token expires: {_format_expiry(token)}",
            title="Login Success",
            border_style="green",
        )
    )


@app.command()
def logout(
    name: str = typer.Argument(..., help="Instance name"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Remove the stored token for an instance.

    Example:
        canvas auth logout canvas.example.edu
    """
    console = Console()

    if not yes and not typer.confirm(f"Are you sure you want to logout from {name}?"):
        console.print("Logout cancelled")
        return

    try:
        store = _token_store(AuthSettings.load())
        store.delete(name)
    except AuthError as e:
        _error_panel(console, "An error occurred during logout.", e, "Logout Error")
        raise typer.Exit(1) from None

    console.print(
        Panel(
            f"[green]Successfully logged out from {name}[/green]",
            title="Logout Success",
            border_style="green",
        )
    )


@app.command()
def status(
    names: list[str] = typer.Argument(..., help="Instance names"),
) -> None:
    """Show stored token status for one or more instances.

    Exits with status 1 when any instance is not authenticated.

    Example:
        canvas auth status canvas.example.edu
    """
    console = Console()

    try:
        store = _token_store(AuthSettings.load())
    except AuthError as e:
        _error_panel(console, "Cannot open the token store.", e, "Status Check Error")
        raise typer.Exit(1) from None

    table = Table(title="Canvas Instances")
    table.add_column("Instance", style="cyan")
    table.add_column("Status")
    table.add_column("Expires", style="green")

    all_authenticated = True
    for name in names:
        try:
            token = store.load(name)
        except AuthError as e:
            table.add_row(name, "[red]Error loading token[/red]", str(e))
            all_authenticated = False
            continue

        if token is None:
            table.add_row(name, "[red]Not authenticated[/red]", "-")
            all_authenticated = False
        elif token.is_expired():
            expired = "[yellow]Token expired[/yellow]"
            if token.refresh_token:
                expired += " (will refresh)"
            table.add_row(name, expired, _format_expiry(token))
        else:
            table.add_row(name, "[green]Authenticated[/green]", _format_expiry(token))

    console.print(table)

    if not all_authenticated:
        console.print("\nRun 'canvas auth login <instance-url>' to authenticate.")
        raise typer.Exit(1) from None
