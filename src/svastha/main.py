"""
Svastha - CLI Entry Point.

Usage:
    svastha onboard          Run the onboarding flow interactively
    svastha start            Show which screen the app would open on
    svastha health           Check configuration
    svastha version          Show version
"""

import asyncio
import logging
import sys
from datetime import datetime, timezone

import typer
from rich.console import Console
from rich.panel import Panel
from rich.spinner import Spinner
from rich.live import Live

from onboarding import OnboardingOrchestrator, OnboardingPhase, Outcome, Route, start_route
from onboarding.collaborators import FederatedCredential
from onboarding.survey import CONDITION_OPTIONS, GENDER_OPTIONS, LIFESTYLE_OPTIONS

app = typer.Typer(
    name="svastha",
    help="Aham Svastha - onboarding for your wellness companion.",
    add_completion=False,
)
console = Console()
logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Log to stderr so prompts stay readable."""
    from svastha.config import get_settings

    level = logging.DEBUG if verbose else getattr(logging, get_settings().log_level)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    # Quiet down noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def build_orchestrator() -> OnboardingOrchestrator:
    """Wire the orchestrator to Supabase and the local preference file."""
    from svastha.config import get_settings
    from svastha.db import SupabaseIdentityProvider, SupabaseUserRecordStore, get_client
    from svastha.preferences import FilePreferenceStore

    settings = get_settings()
    if not settings.has_supabase:
        console.print("[red]Supabase is not configured.[/red] Run 'svastha health' for details.")
        raise typer.Exit(1)
    client = get_client()
    return OnboardingOrchestrator(
        store=SupabaseUserRecordStore(client, settings.users_table),
        identity=SupabaseIdentityProvider(client, settings.federated_provider),
        preferences=FilePreferenceStore(settings.preferences_path),
    )


def _await(coro, text: str = "Working..."):
    with Live(Spinner("dots", text=text), console=console, transient=True):
        return asyncio.run(coro)


def _show(outcome: Outcome) -> None:
    logger.debug(f"Outcome: {outcome.to_dict()}")
    if outcome.message:
        style = "yellow" if outcome.rejected else "red"
        console.print(f"[{style}]{outcome.message}[/{style}]")


def _choose(label: str, options: list[str]) -> int:
    menu = "  ".join(f"[{i}] {name}" for i, name in enumerate(options))
    while True:
        raw = console.input(f"{label} {menu}: ").strip()
        if raw.isdigit() and int(raw) < len(options):
            return int(raw)
        console.print("[red]Pick one of the numbers shown.[/red]")


# =============================================================================
# Flow steps
# =============================================================================


def _authenticate(orchestrator: OnboardingOrchestrator) -> Route | None:
    """Username -> sign-in or sign-up. Returns the route after auth."""
    while True:
        username = console.input("\n[bold blue]Username:[/bold blue] ").strip()
        if username.lower() in ("exit", "quit", "q"):
            return None

        outcome = _await(orchestrator.begin(username), "Looking you up...")
        _show(outcome)
        if not outcome.ok:
            continue

        if outcome.route == Route.SIGN_IN:
            password = console.input("[bold]Password:[/bold] ", password=True)
            outcome = _await(orchestrator.sign_in_with_password(username, password), "Signing in...")
            _show(outcome)
            if outcome.ok:
                return outcome.route

        # AWAITING_SIGN_UP: new username, or sign-in fell through
        route = _sign_up(orchestrator, username)
        if route is not None:
            return route


def _sign_up(orchestrator: OnboardingOrchestrator, username: str) -> Route | None:
    console.print(f"\n[bold]Create an account for {username}[/bold]")
    choice = _choose("How?", ["Email", "One-tap token", "Continue as guest", "Back"])

    if choice == 0:
        email = console.input("Email: ").strip()
        password = console.input("Password: ", password=True)
        outcome = _await(orchestrator.register(username, email, password), "Registering...")
    elif choice == 1:
        token = console.input("Paste the provider id token: ").strip()
        outcome = _await(
            orchestrator.sign_in_or_sign_up_with_federated_credential(
                FederatedCredential(id_token=token or None), is_sign_in_attempt=False
            ),
            "Linking account...",
        )
    elif choice == 2:
        outcome = _await(orchestrator.continue_as_guest(), "Starting guest session...")
    else:
        orchestrator.navigate(OnboardingPhase.IDLE)
        return None

    _show(outcome)
    return outcome.route if outcome.ok else None


def _parse_date(text: str) -> int | None:
    """YYYY-MM-DD as UTC midnight in epoch millis; None if it doesn't parse."""
    try:
        moment = datetime.strptime(text, "%Y-%m-%d").replace(tzinfo=timezone.utc)
    except ValueError:
        return None
    return int(moment.timestamp() * 1000)


def _survey(orchestrator: OnboardingOrchestrator) -> bool:
    console.print(
        Panel.fit(
            "The information you provide will help us know you better\n"
            "and tailor the app experience just for you.",
            title="Tell us about yourself",
            border_style="green",
        )
    )
    orchestrator.update_gender(_choose("Gender", GENDER_OPTIONS))
    orchestrator.update_age(console.input("Age: ").strip())

    if orchestrator.requires_period_date:
        while True:
            raw = console.input(f"{orchestrator.formatted_period_date} (YYYY-MM-DD, blank to skip): ").strip()
            if not raw:
                break
            epoch_millis = _parse_date(raw)
            if epoch_millis is None:
                console.print("[red]Use the YYYY-MM-DD format, e.g. 2024-03-18.[/red]")
                continue
            orchestrator.set_period_date(epoch_millis)
            console.print(f"[dim]{orchestrator.formatted_period_date}[/dim]")
            break

    orchestrator.update_height(console.input("Height (cm): ").strip())
    orchestrator.update_weight(console.input("Weight (kg): ").strip())
    orchestrator.update_lifestyle(_choose("Lifestyle", LIFESTYLE_OPTIONS))

    console.print(f"[dim]Conditions: {', '.join(CONDITION_OPTIONS)}[/dim]")
    for name in console.input("Any of these? (comma separated): ").split(","):
        if name.strip():
            orchestrator.toggle_condition(name.strip())

    while True:
        outcome = _await(orchestrator.submit_survey(), "Saving...")
        _show(outcome)
        if outcome.ok:
            return True
        if outcome.rejected:
            return False
        if console.input("Retry? [y/N]: ").strip().lower() != "y":
            return False


# =============================================================================
# Commands
# =============================================================================


@app.command()
def onboard(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Run the onboarding flow against the configured backend."""
    setup_logging(verbose)
    orchestrator = build_orchestrator()

    route = _await(start_route(orchestrator.preferences, orchestrator.identity))
    if route == Route.DASHBOARD:
        console.print("[green]You're all set up already.[/green]")
        return

    console.print(
        Panel.fit(
            "[bold green]Aham Svastha[/bold green]\n"
            "Let's get you started.\n\n"
            "[dim]Type 'exit' at the username prompt to leave.[/dim]",
            title="Welcome",
            border_style="green",
        )
    )

    try:
        if route == Route.WELCOME:
            route = _authenticate(orchestrator)
            if route is None:
                console.print("\n[dim]Goodbye![/dim]")
                return

        if route == Route.SURVEY and not _survey(orchestrator):
            console.print("[yellow]Survey not saved. Run again to finish.[/yellow]")
            return
    except KeyboardInterrupt:
        console.print("\n\n[dim]Onboarding interrupted. Goodbye![/dim]")
        return

    console.print("\n[bold green]Welcome aboard![/bold green] Opening your dashboard.")


@app.command()
def start() -> None:
    """Show which screen the app opens on."""
    setup_logging()
    orchestrator = build_orchestrator()
    route = _await(start_route(orchestrator.preferences, orchestrator.identity))
    console.print(f"Start screen: [bold]{route.value}[/bold]")


@app.command()
def health() -> None:
    """Check configuration."""
    from svastha.config import get_settings

    console.print("\n[bold]Svastha Health Check[/bold]\n")

    try:
        settings = get_settings()
        console.print("[green]OK[/green] Configuration loaded")
        console.print(f"   Environment: {settings.svastha_env}")
        console.print(f"   Log level: {settings.log_level}")
        console.print(f"   Preferences: {settings.preferences_path}")

        if not settings.has_supabase:
            console.print("[red]FAIL[/red] Supabase URL or anon key missing")
            raise typer.Exit(1)

        if settings.supabase_url.startswith("https://"):
            console.print("[green]OK[/green] Supabase configured")
        else:
            console.print("[red]FAIL[/red] Supabase URL must start with https://")
            raise typer.Exit(1)

        console.print("\n[green]All checks passed![/green]")

    except typer.Exit:
        console.print("[dim]Make sure you have a .env file with required variables.[/dim]")
        raise
    except Exception as e:
        console.print(f"\n[red]FAIL Configuration error: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def version() -> None:
    """Show version information."""
    from svastha import __version__

    console.print(f"Svastha version {__version__}")


if __name__ == "__main__":
    app()
