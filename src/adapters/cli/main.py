"""
adapters.cli.main - CLI adapter for the Meal Planner.

Mirrors src/adapters/rest/ but for terminal use.  Uses the same
ServiceFactory and services as the REST API so all behaviour (auth,
preferences, suggestions) is identical.

Commands
--------
  init         Create the database schema
  seed         Load sample users, menus, preferences and schedules
  register     Create a new account
  login        Sign in and save credentials locally (~/.meal-planner/session.json)
  logout       Clear stored credentials
  whoami       Show the currently logged-in user
  menus        Browse the menu catalog
  preferences  Show or update your food preferences
  suggest      Generate today's breakfast, lunch and dinner
  today        Show today's suggestion
  reroll       Re-pick one meal of today's suggestion

Usage
-----
  python src/adapters/cli/main.py login
  python src/adapters/cli/main.py suggest
  python src/adapters/cli/main.py reroll lunch
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Optional

# ── Ensure src/ is on the path ──
_SRC = Path(__file__).resolve().parent.parent.parent
sys.path.insert(0, str(_SRC))

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from adapters.cli.session import Session, clear_session, load_session, save_session
from application.context import SessionContext
from application.dto import LoginRequest, RegisterRequest
from domain.exceptions import AuthenticationError, DomainError, DuplicateEmailError
from domain.models import DailySuggestion, MealType, PageRequest
from factory import ServiceFactory
from infrastructure.config import Settings, configure_logging

__version__ = "0.1.0"

console = Console()
app = typer.Typer(
    help="Meal Planner CLI",
    add_completion=False,
    no_args_is_help=True,
)


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

def _require_session() -> Session:
    """Return the stored session or exit with a user-friendly error."""
    session = load_session()
    if session is None:
        console.print(
            "[bold red]Not logged in.[/bold red] "
            "Run [bold]login[/bold] (or [bold]register[/bold]) first."
        )
        raise typer.Exit(code=1)
    return session


async def _make_factory() -> ServiceFactory:
    """Create a ServiceFactory with the DB schema up-to-date."""
    config = Settings.from_env()
    configure_logging("WARNING" if config.log_level == "INFO" else config.log_level)
    factory = ServiceFactory(config)
    await factory.initialize()
    return factory


async def _build_ctx(session: Session, factory: ServiceFactory) -> SessionContext:
    """Resolve the stored token to the caller's current user record."""
    auth_svc = factory.create_authentication_service()
    try:
        user = await auth_svc.authenticate(session.access_token)
    except AuthenticationError:
        console.print(
            "[bold red]Session expired.[/bold red] Run [bold]login[/bold] again."
        )
        raise typer.Exit(code=1)
    return SessionContext.for_user(user)


def _run(coro) -> None:
    """Run a command coroutine, turning domain errors into a clean exit."""
    try:
        asyncio.run(coro)
    except DomainError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=1)


def _fmt_budget(budget_min: Optional[float], budget_max: Optional[float]) -> str:
    if budget_min is None and budget_max is None:
        return "[dim]any[/dim]"
    low = f"{budget_min:g}" if budget_min is not None else "0"
    high = f"{budget_max:g}" if budget_max is not None else "∞"
    return f"{low} – {high}"


def _print_suggestion(suggestion: DailySuggestion) -> None:
    t = Table(box=box.SIMPLE, padding=(0, 2))
    t.add_column("Meal", style="bold")
    t.add_column("Menu")
    t.add_column("Cuisine")
    t.add_column("Budget")
    for meal_type in MealType:
        item = suggestion.slot(meal_type)
        if item is None:
            t.add_row(meal_type.value.title(), "[dim]—[/dim]", "", "")
        else:
            t.add_row(
                meal_type.value.title(),
                f"{item.title} [dim](#{item.id})[/dim]",
                item.cuisine,
                _fmt_budget(item.budget_min, item.budget_max),
            )
    console.print(Panel(t, title=f"Meals for {suggestion.date}", border_style="green"))


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"meal-planner v{__version__}")
        raise typer.Exit()


# ---------------------------------------------------------------------------
# Commands: Setup (no login required)
# ---------------------------------------------------------------------------

@app.command()
def init() -> None:
    """Create the database schema (safe to run repeatedly)."""
    async def _main() -> None:
        factory = await _make_factory()
        console.print(Panel(
            f"[bold green]Database ready[/bold green] at {factory.config.db_path}\n"
            "Run [bold]seed[/bold] to load sample data.",
            border_style="green",
        ))

    _run(_main())


@app.command()
def seed() -> None:
    """Load sample users, menus, preferences and schedules.

    Existing menus are replaced; seed users are created or updated.
    """
    async def _main() -> None:
        factory = await _make_factory()
        with console.status("[bold cyan]Seeding database…", spinner="dots"):
            report = await factory.create_seed_service().run()

        t = Table(box=box.SIMPLE, show_header=False, padding=(0, 2))
        t.add_column("Field", style="bold")
        t.add_column("Value")
        t.add_row("Users", ", ".join(report.users))
        t.add_row("Menus", str(report.menus))
        t.add_row("Preferences", str(report.preferences))
        t.add_row("Schedules", str(report.schedules))
        console.print(Panel(t, title="Seed complete", border_style="green"))

    _run(_main())


# ---------------------------------------------------------------------------
# Commands: Auth
# ---------------------------------------------------------------------------

@app.command()
def register() -> None:
    """Create a new account."""
    console.print(Panel("[bold]Create Account[/bold]", border_style="blue"))

    email    = Prompt.ask("[bold]Email[/bold]")
    password = Prompt.ask("[bold]Password[/bold]  (min 6 chars)", password=True)
    name     = Prompt.ask("[bold]Name[/bold]")
    timezone = Prompt.ask("[bold]Timezone[/bold]  (IANA, leave empty for default)", default="")

    if len(password) < 6:
        console.print("[bold red]Password must be at least 6 characters.[/bold red]")
        raise typer.Exit(code=1)

    async def _main() -> None:
        factory  = await _make_factory()
        auth_svc = factory.create_authentication_service()
        try:
            token = await auth_svc.register(RegisterRequest(
                email=email,
                password=password,
                name=name,
                timezone=timezone or None,
            ))
        except DuplicateEmailError:
            console.print(
                f"[bold red]Email '{email}' is already registered.[/bold red]"
            )
            raise typer.Exit(code=1)

        save_session(Session(
            user_id=token.user.id,
            access_token=token.access_token,
            email=token.user.email,
        ))
        console.print(Panel(
            f"[bold green]Account created and logged in![/bold green]\n"
            f"Welcome, [bold]{token.user.name}[/bold] (user_id={token.user.id}).\n"
            "Run [bold]preferences[/bold] or [bold]suggest[/bold] to get started.",
            border_style="green",
        ))

    _run(_main())


@app.command()
def login() -> None:
    """Sign in to your account."""
    email    = Prompt.ask("[bold]Email[/bold]")
    password = Prompt.ask("[bold]Password[/bold]", password=True)

    async def _main() -> None:
        factory  = await _make_factory()
        auth_svc = factory.create_authentication_service()
        try:
            token = await auth_svc.login(LoginRequest(
                email=email, password=password
            ))
        except AuthenticationError:
            console.print(
                "[bold red]Login failed.[/bold red] "
                "Check your email and password."
            )
            raise typer.Exit(code=1)

        save_session(Session(
            user_id=token.user.id,
            access_token=token.access_token,
            email=token.user.email,
        ))
        console.print(Panel(
            f"[bold green]Logged in![/bold green] "
            f"Welcome back, [bold]{token.user.name}[/bold].\n"
            "Run [bold]today[/bold] or [bold]suggest[/bold] to continue.",
            border_style="green",
        ))

    _run(_main())


@app.command()
def logout() -> None:
    """Sign out and clear stored credentials."""
    session = load_session()
    if session is None:
        console.print("[dim]Not currently logged in.[/dim]")
        return
    label = session.email or f"user #{session.user_id}"
    if Confirm.ask(f"Sign out [bold]{label}[/bold]?"):
        clear_session()
        console.print("[green]Logged out.[/green]")


@app.command()
def whoami() -> None:
    """Show the currently logged-in user."""
    session = load_session()
    if session is None:
        console.print("[dim]Not logged in.[/dim]")
        return

    async def _main() -> None:
        factory = await _make_factory()
        ctx     = await _build_ctx(session, factory)
        console.print(
            f"Logged in as [bold]{ctx.email}[/bold] "
            f"(user_id={ctx.user_id}, role={ctx.role}, timezone={ctx.timezone})"
        )

    _run(_main())


# ---------------------------------------------------------------------------
# Commands: Catalog and preferences (requires login)
# ---------------------------------------------------------------------------

@app.command()
def menus(
    meal_type: Optional[MealType] = typer.Option(None, "--meal-type", "-m", help="Filter by meal."),
    cuisine: Optional[str] = typer.Option(None, "--cuisine", "-c", help="Filter by cuisine."),
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Match title or cuisine."),
    page: int = typer.Option(1, "--page", "-p"),
    limit: int = typer.Option(20, "--limit", "-l"),
) -> None:
    """Browse the menu catalog."""
    session = _require_session()

    async def _main() -> None:
        factory = await _make_factory()
        await _build_ctx(session, factory)
        result = await factory.create_menu_service().list(
            PageRequest(page=page, limit=limit, sort="title:asc", search=search),
            meal_type=meal_type,
            cuisine=cuisine,
        )

        t = Table(box=box.SIMPLE, padding=(0, 1))
        t.add_column("#", justify="right", style="dim")
        t.add_column("Title", style="bold")
        t.add_column("Meal")
        t.add_column("Cuisine")
        t.add_column("Allergens")
        t.add_column("Budget")
        t.add_column("Active")
        for item in result.items:
            t.add_row(
                str(item.id),
                item.title,
                item.meal_type.value,
                item.cuisine,
                ", ".join(item.allergens) or "[dim]none[/dim]",
                _fmt_budget(item.budget_min, item.budget_max),
                "yes" if item.is_active else "[red]no[/red]",
            )
        console.print(Panel(
            t,
            title=f"Menus (page {result.page}/{max(result.pages, 1)}, {result.total} total)",
            border_style="blue",
        ))

    _run(_main())


@app.command()
def preferences(
    cuisine: Optional[list[str]] = typer.Option(None, "--cuisine", "-c", help="Preferred cuisine (repeatable)."),
    avoid: Optional[list[str]] = typer.Option(None, "--avoid", "-a", help="Allergen to avoid (repeatable)."),
    budget_min: Optional[float] = typer.Option(None, "--budget-min"),
    budget_max: Optional[float] = typer.Option(None, "--budget-max"),
    exclude: Optional[list[MealType]] = typer.Option(None, "--exclude", "-x", help="Meal to skip (repeatable)."),
    reset: bool = typer.Option(False, "--reset", help="Clear all preferences."),
) -> None:
    """Show your food preferences, or update them when options are given."""
    session = _require_session()

    fields: dict = {}
    if reset:
        fields = {
            "cuisines": [], "allergens_avoid": [], "excluded_meal_types": [],
            "budget_min": None, "budget_max": None,
        }
    if cuisine:
        fields["cuisines"] = cuisine
    if avoid:
        fields["allergens_avoid"] = avoid
    if exclude:
        fields["excluded_meal_types"] = [m.value for m in exclude]
    if budget_min is not None:
        fields["budget_min"] = budget_min
    if budget_max is not None:
        fields["budget_max"] = budget_max

    async def _main() -> None:
        factory = await _make_factory()
        ctx     = await _build_ctx(session, factory)
        service = factory.create_preference_service()
        if fields:
            pref = await service.update(ctx.user_id, fields)
        else:
            pref = await service.get_or_create(ctx.user_id)

        t = Table(box=box.SIMPLE, show_header=False, padding=(0, 2))
        t.add_column("Field", style="bold")
        t.add_column("Value")
        t.add_row("Cuisines", ", ".join(pref.cuisines) or "[dim]any[/dim]")
        t.add_row("Avoid", ", ".join(pref.allergens_avoid) or "[dim]none[/dim]")
        t.add_row("Budget", _fmt_budget(pref.budget_min, pref.budget_max))
        t.add_row(
            "Skipped meals",
            ", ".join(m.value for m in pref.excluded_meal_types) or "[dim]none[/dim]",
        )
        console.print(Panel(t, title="Your Preferences", border_style="yellow"))

    _run(_main())


# ---------------------------------------------------------------------------
# Commands: Suggestions (requires login)
# ---------------------------------------------------------------------------

@app.command()
def suggest() -> None:
    """Generate today's breakfast, lunch and dinner (replaces any earlier pick)."""
    session = _require_session()

    async def _main() -> None:
        factory = await _make_factory()
        ctx     = await _build_ctx(session, factory)
        with console.status("[bold cyan]Picking meals…", spinner="dots"):
            suggestion = await factory.create_suggestion_service().generate_today(
                ctx.user_id, ctx.timezone,
            )
        _print_suggestion(suggestion)

    _run(_main())


@app.command()
def today() -> None:
    """Show today's suggestion, if one was generated."""
    session = _require_session()

    async def _main() -> None:
        factory = await _make_factory()
        ctx     = await _build_ctx(session, factory)
        suggestion = await factory.create_suggestion_service().get_today(
            ctx.user_id, ctx.timezone,
        )
        if suggestion is None:
            console.print(
                "[dim]No suggestion for today yet.[/dim] Run [bold]suggest[/bold]."
            )
            return
        _print_suggestion(suggestion)

    _run(_main())


@app.command()
def reroll(
    meal_type: MealType = typer.Argument(..., help="breakfast, lunch or dinner"),
) -> None:
    """Re-pick one meal of today's suggestion."""
    session = _require_session()

    async def _main() -> None:
        factory = await _make_factory()
        ctx     = await _build_ctx(session, factory)
        suggestion = await factory.create_suggestion_service().reroll(
            ctx.user_id, ctx.timezone, meal_type,
        )
        _print_suggestion(suggestion)

    _run(_main())


# ---------------------------------------------------------------------------
# Global version option
# ---------------------------------------------------------------------------

@app.callback()
def _callback(
    version: bool = typer.Option(
        False, "--version", "-v",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Meal Planner CLI"""


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    app()
