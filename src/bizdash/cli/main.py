import asyncio
import json
import logging
from typing import Optional

import typer
from tortoise import Tortoise
from tortoise.exceptions import IntegrityError

from ..core.errors import DashboardError
from ..features.auth.models import User as AuthUser
from ..features.auth.security import get_password_hash
from ..features.auth import service as auth_service
from ..features.dashboard.period import load_timezone
from ..features.dashboard.repository import TortoiseDashboardRepository
from ..features.dashboard.service import DashboardReport, generate_report
from ..features.organizations import service as organization_service
from ..main import TORTOISE_ORM_CONFIG

logger = logging.getLogger(__name__)

app = typer.Typer(name="bizdash", help="CLI for managing bizdash organizations, users and reports.")


# Shared async context manager for database connection
class DBConnection:
    async def __aenter__(self):
        await Tortoise.init(config=TORTOISE_ORM_CONFIG)
        await Tortoise.generate_schemas(safe=True)  # Generate schema if it doesn't exist
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await Tortoise.close_connections()


# Organization commands
organization_app = typer.Typer(name="organizations", help="Manage organizations.")
app.add_typer(organization_app)


def _check_timezone(timezone: str) -> None:
    if load_timezone(timezone).key != timezone:
        typer.secho(f"Error: '{timezone}' is not a known IANA timezone.", fg=typer.colors.RED)
        raise typer.Exit(code=1)


@organization_app.command("create")
def create_organization_command(
    name: str = typer.Option(..., prompt=True, help="Display name of the organization."),
    timezone: str = typer.Option("UTC", help="IANA timezone reports are anchored to."),
    country: Optional[str] = typer.Option(None, help="Country of the organization."),
    date_format: Optional[str] = typer.Option(None, help="Preferred date format, e.g. DD/MM/YYYY."),
):
    """Creates a new organization."""
    _check_timezone(timezone)
    asyncio.run(_create_organization(name, timezone, country, date_format))


async def _create_organization(name: str, timezone: str, country: Optional[str], date_format: Optional[str]):
    async with DBConnection():
        organization = await organization_service.create_organization(
            name=name, timezone=timezone, country=country, date_format=date_format
        )
        typer.secho(
            f"Organization '{organization.name}' created with ID: {organization.public_id}",
            fg=typer.colors.GREEN,
        )


@organization_app.command("set-timezone")
def set_timezone_command(
    public_id: str = typer.Argument(..., help="Public ID of the organization."),
    timezone: str = typer.Argument(..., help="IANA timezone, e.g. Asia/Kolkata."),
):
    """Changes the timezone an organization's reports are anchored to."""
    _check_timezone(timezone)
    asyncio.run(_set_timezone(public_id, timezone))


async def _set_timezone(public_id: str, timezone: str):
    async with DBConnection():
        organization = await organization_service.get_organization_by_public_id(public_id)
        if not organization:
            typer.secho(f"Error: Organization '{public_id}' not found.", fg=typer.colors.RED)
            raise typer.Exit(code=1)
        organization.timezone = timezone
        await organization.save()
        typer.secho(f"Organization '{organization.name}' now reports in {timezone}.", fg=typer.colors.GREEN)


# User management commands
user_app = typer.Typer(name="users", help="Manage user accounts.")
app.add_typer(user_app)


@user_app.command("create")
def create_user_command(
    username: str = typer.Option(..., prompt=True, help="Username for the new user."),
    email: str = typer.Option(..., prompt=True, help="Email for the new user."),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True, help="Password for the new user."),
    organization: str = typer.Option(..., prompt=True, help="Public ID of the user's organization."),
    admin: bool = typer.Option(False, "--admin", help="Give the user the admin role."),
):
    """Creates a user bound to an organization."""
    asyncio.run(_create_user(username, email, password, organization, admin))


async def _create_user(username: str, email: str, password: str, organization_public_id: str, admin: bool):
    async with DBConnection():
        typer.echo(f"Attempting to create user: {username} ({email})...")
        organization = await organization_service.get_organization_by_public_id(organization_public_id)
        if not organization:
            typer.secho(f"Error: Organization '{organization_public_id}' not found.", fg=typer.colors.RED)
            raise typer.Exit(code=1)
        if await AuthUser.filter(username=username).exists():
            typer.secho(f"Error: User with username '{username}' already exists.", fg=typer.colors.RED)
            raise typer.Exit(code=1)
        if await AuthUser.filter(email=email).exists():
            typer.secho(f"Error: User with email '{email}' already exists.", fg=typer.colors.RED)
            raise typer.Exit(code=1)
        try:
            user = await auth_service.create_user(
                {
                    "username": username,
                    "email": email,
                    "role": "admin" if admin else "member",
                    "organization": organization,
                },
                get_password_hash(password),
            )
        except IntegrityError as e:
            typer.secho(f"Error creating user: {e}", fg=typer.colors.RED)
            raise typer.Exit(code=1)
        typer.secho(f"User '{user.username}' created successfully with ID: {user.public_id}", fg=typer.colors.GREEN)


@user_app.command("disable")
def disable_user_command(
    username: str = typer.Argument(..., help="The username of the user to disable.")
):
    """Disables an existing user's account."""
    asyncio.run(_disable_user(username))


async def _disable_user(username: str):
    async with DBConnection():
        user = await AuthUser.get_or_none(username=username)
        if not user:
            typer.secho(f"Error: User with username '{username}' not found.", fg=typer.colors.RED)
            raise typer.Exit(code=1)
        if not user.is_active:
            typer.secho(f"User '{username}' is already inactive.", fg=typer.colors.YELLOW)
            raise typer.Exit(code=0)
        user.is_active = False
        await user.save()
        typer.secho(f"User account '{username}' has been successfully disabled.", fg=typer.colors.GREEN)


# Report commands
report_app = typer.Typer(name="reports", help="Run dashboard reports.")
app.add_typer(report_app)


@report_app.command("show")
def show_report_command(
    report: DashboardReport = typer.Argument(..., help="Which report to run."),
    organization: str = typer.Option(..., help="Public ID of the organization."),
    date: str = typer.Option(..., help="YYYY-MM-DD, or YYYY-MM for monthly reports."),
    filter_type: Optional[str] = typer.Option(None, help="day, month or year."),
):
    """Prints a dashboard report as JSON."""
    asyncio.run(_show_report(report, organization, date, filter_type))


async def _show_report(report: DashboardReport, organization_public_id: str, date: str, filter_type: Optional[str]):
    async with DBConnection():
        repository = TortoiseDashboardRepository(organization_id=organization_public_id)
        try:
            payload = await generate_report(report, repository, date, filter_type)
        except DashboardError as e:
            logger.warning(f"{report.value} report for {organization_public_id} failed: {e.message}")
            typer.secho(f"Error ({e.status_code}): {e.message}", fg=typer.colors.RED)
            raise typer.Exit(code=1)
        typer.echo(json.dumps(payload.model_dump(by_alias=True), indent=2))


if __name__ == "__main__":
    app()
