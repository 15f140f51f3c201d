import json

import pytest
from typer.testing import CliRunner

from bizdash.cli import main as cli
from bizdash.features.organizations.models import Organization

runner = CliRunner()


class ExistingConnection:
    """Reuses the connection the test database fixture already opened."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None


@pytest.fixture
def use_test_db(monkeypatch):
    monkeypatch.setattr(cli, "DBConnection", ExistingConnection)


def test_create_organization_rejects_unknown_timezone():
    result = runner.invoke(cli.app, ["organizations", "create", "--name", "Nowhere", "--timezone", "Mars/Base"])

    assert result.exit_code == 1
    assert "not a known IANA timezone" in result.output


def test_set_timezone_rejects_unknown_timezone():
    result = runner.invoke(cli.app, ["organizations", "set-timezone", "someid", "Not/AZone"])

    assert result.exit_code == 1


def test_unknown_report_name_is_a_usage_error():
    result = runner.invoke(cli.app, ["reports", "show", "profit", "--organization", "x", "--date", "2024-03-15"])

    assert result.exit_code == 2


def test_show_report_as_json(use_test_db, test_organization: Organization):
    result = runner.invoke(
        cli.app,
        [
            "reports", "show", "sales_over_time",
            "--organization", test_organization.public_id,
            "--date", "2024-03-15",
            "--filter-type", "day",
        ],
    )

    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == {"totalSales": 0.0}


def test_show_report_for_unknown_organization(use_test_db):
    result = runner.invoke(
        cli.app,
        ["reports", "show", "inventory_overview", "--organization", "missing", "--date", "2024-03"],
    )

    assert result.exit_code == 1
    assert "Organization not found!" in result.output


def test_show_report_with_bad_date(use_test_db, test_organization: Organization):
    result = runner.invoke(
        cli.app,
        ["reports", "show", "overview", "--organization", test_organization.public_id, "--date", "03/2024"],
    )

    assert result.exit_code == 1
    assert "Error (400)" in result.output


def test_set_timezone(use_test_db, test_organization: Organization):
    result = runner.invoke(cli.app, ["organizations", "set-timezone", test_organization.public_id, "Europe/Stockholm"])

    assert result.exit_code == 0, result.output
    assert "now reports in Europe/Stockholm" in result.output
