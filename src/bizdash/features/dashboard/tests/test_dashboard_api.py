import datetime
from types import SimpleNamespace
from zoneinfo import ZoneInfo

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from bizdash.features.auth.security import get_current_active_user
from bizdash.features.dashboard.records import (
    CustomerRecord, ExpenseRecord, InvoiceLineRecord, InvoiceRecord, ItemRecord,
    OrganizationRecord, StockMovementRecord,
)
from bizdash.features.dashboard.repository import InMemoryDashboardRepository
from bizdash.features.dashboard.router import get_dashboard_repository

KOLKATA = ZoneInfo("Asia/Kolkata")
ORGANIZATION = OrganizationRecord(organization_id="org_api", name="Chai Traders", timezone="Asia/Kolkata")


def local(month: int, day: int, hour: int = 12) -> datetime.datetime:
    return datetime.datetime(2024, month, day, hour, tzinfo=KOLKATA)


def build_repository() -> InMemoryDashboardRepository:
    return InMemoryDashboardRepository(
        ORGANIZATION,
        invoices=[
            InvoiceRecord(
                "i1", local(3, 15), "c1", "Acme",
                lines=(InvoiceLineRecord("tea", "Assam Tea", 3),),
                paid_status="Completed", paid_amount=100, total_amount=100, sale_amount=80,
            ),
            InvoiceRecord("i2", local(3, 15), "c2", "Beta", paid_status="Pending", total_amount=50, sale_amount=40),
        ],
        customers=[
            CustomerRecord("c0", "Old", local(2, 10), "Active"),
            CustomerRecord("c1", "Acme", local(3, 2), "Active"),
        ],
        items=[ItemRecord("tea", "Assam Tea", local(3, 1), image="tea.png", cost_price=2, category="Tea")],
        stock_movements=[StockMovementRecord("tea", local(3, 1), debit_quantity=12)],
        expenses=[ExpenseRecord("e1", local(3, 15), "Rent", 12.3)],
    )


class FailingRepository(InMemoryDashboardRepository):
    async def list_expenses(self, period):
        raise ConnectionError("database is gone")


@pytest.fixture
def override_user(app_for_testing: FastAPI):
    user = SimpleNamespace(username="dashboard", is_active=True, organization=SimpleNamespace(public_id="org_api"))
    app_for_testing.dependency_overrides[get_current_active_user] = lambda: user
    return user


@pytest.fixture
def dashboard_client(app_for_testing: FastAPI, override_user):
    app_for_testing.dependency_overrides[get_dashboard_repository] = build_repository
    with TestClient(app_for_testing) as tc:
        yield tc


def test_overview(dashboard_client: TestClient):
    response = dashboard_client.get("/api/v1/dashboard/overview", params={"date": "2024-03-15", "filterType": "month"})

    assert response.status_code == 200
    assert response.json() == {
        "totalRevenue": 100.0,
        "totalInventoryValue": 24.0,
        "totalExpenses": 12.3,
        "newCustomer": 1,
        "totalSales": 150.0,
    }


def test_sales_over_time(dashboard_client: TestClient):
    response = dashboard_client.get(
        "/api/v1/dashboard/sales-over-time", params={"date": "2024/03/15", "filterType": "day"}
    )

    assert response.status_code == 200
    assert response.json() == {"totalSales": 150.0}


def test_expense_by_category(dashboard_client: TestClient):
    response = dashboard_client.get(
        "/api/v1/dashboard/expense-by-category", params={"date": "2024-03-15", "filterType": "year"}
    )

    assert response.status_code == 200
    assert response.json() == {"category": [{"category": "Rent", "total": "12.30"}]}


def test_top_products_customers(dashboard_client: TestClient):
    response = dashboard_client.get(
        "/api/v1/dashboard/top-products-customers", params={"date": "2024-03-15", "filterType": "day"}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["topProducts"] == [
        {
            "itemId": "tea",
            "itemName": "Assam Tea",
            "totalSold": 3.0,
            "totalAmount": 80.0,
            "category": "Tea",
            "itemImage": "tea.png",
            "currentStock": "In Stock",
        }
    ]
    assert body["topCustomers"] == [
        {"customerId": "c1", "customerName": "Acme", "totalSpent": 100.0},
        {"customerId": "c2", "customerName": "Beta", "totalSpent": 50.0},
    ]


def test_average_order_value(dashboard_client: TestClient):
    response = dashboard_client.get(
        "/api/v1/dashboard/average-order-value", params={"date": "2024-03-15", "filterType": "day"}
    )

    assert response.status_code == 200
    assert response.json() == {"averageOrderValue": 60.0}


def test_inventory_overview(dashboard_client: TestClient):
    response = dashboard_client.get("/api/v1/dashboard/inventory/overview", params={"date": "2024-03"})

    assert response.status_code == 200
    assert response.json() == {
        "totalInventoryValue": 24.0,
        "totalItemCount": 12.0,
        "totalOutOfStock": 0,
        "newItems": 1,
    }


def test_top_selling_products(dashboard_client: TestClient):
    response = dashboard_client.get("/api/v1/dashboard/inventory/top-selling", params={"date": "2024/03"})

    assert response.status_code == 200
    assert [product["itemId"] for product in response.json()["topProducts"]] == ["tea"]


def test_customer_retention(dashboard_client: TestClient):
    response = dashboard_client.get("/api/v1/dashboard/customers/retention", params={"date": "2024-03"})

    assert response.status_code == 200
    body = response.json()
    assert body["retentionRate"] == 0.0
    assert body["churnRate"] == -100.0
    assert len(body["dailyRetention"]) == 31
    assert body["dailyRetention"][0] == {"date": "2024-03-01", "retentionRate": 100.0}
    assert body["dailyRetention"][1] == {"date": "2024-03-02", "retentionRate": 0.0}
    # nobody left to retain after the 2nd
    assert body["dailyRetention"][2] == {"date": "2024-03-03", "retentionRate": 0.0}


@pytest.mark.parametrize(
    "path, params, detail",
    [
        ("/api/v1/dashboard/overview", {"filterType": "day"}, "Invalid date format. Use YYYY-MM-DD or YYYY/MM/DD."),
        ("/api/v1/dashboard/overview", {"date": "2024-03-15"}, "Invalid filter type. Use 'month', 'year', or 'day'."),
        (
            "/api/v1/dashboard/sales-over-time",
            {"date": "2024-13-01", "filterType": "month"},
            "Invalid month in date. Month must be between 01 and 12.",
        ),
        ("/api/v1/dashboard/average-order-value", {"date": "2024-02-30", "filterType": "day"}, "Invalid date '2024-02-30'."),
        ("/api/v1/dashboard/inventory/overview", {"date": "2024-03-15"}, "Invalid date format. Use YYYY/MM or YYYY-MM."),
        ("/api/v1/dashboard/customers/retention", {"date": "2024-13"}, "Invalid year or month in date."),
    ],
)
def test_bad_input_is_a_400(dashboard_client: TestClient, path, params, detail):
    response = dashboard_client.get(path, params=params)

    assert response.status_code == 400
    assert response.json() == {"detail": detail}


def test_missing_organization_is_a_404(app_for_testing: FastAPI, override_user):
    app_for_testing.dependency_overrides[get_dashboard_repository] = lambda: InMemoryDashboardRepository(None)

    with TestClient(app_for_testing) as tc:
        response = tc.get("/api/v1/dashboard/overview", params={"date": "2024-03-15", "filterType": "day"})

    assert response.status_code == 404
    assert response.json() == {"detail": "Organization not found!"}


def test_failed_read_is_a_500(app_for_testing: FastAPI, override_user):
    app_for_testing.dependency_overrides[get_dashboard_repository] = lambda: FailingRepository(ORGANIZATION)

    with TestClient(app_for_testing) as tc:
        response = tc.get("/api/v1/dashboard/expense-by-category", params={"date": "2024-03-15", "filterType": "day"})

    assert response.status_code == 500
    assert response.json() == {"detail": "Internal server error."}


def test_requires_authentication(client: TestClient):
    response = client.get("/api/v1/dashboard/overview", params={"date": "2024-03-15", "filterType": "day"})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_member_reads_their_organization(app_for_testing: FastAPI, test_member_token):
    token, _ = test_member_token

    with TestClient(app_for_testing) as tc:
        response = tc.get(
            "/api/v1/dashboard/sales-over-time",
            params={"date": "2024-03-15", "filterType": "day"},
            headers={"Authorization": f"Bearer {token}"},
        )

    assert response.status_code == 200
    assert response.json() == {"totalSales": 0.0}


@pytest.mark.asyncio
async def test_user_without_organization_is_a_404(app_for_testing: FastAPI, test_orphan_token):
    with TestClient(app_for_testing) as tc:
        response = tc.get(
            "/api/v1/dashboard/overview",
            params={"date": "2024-03-15", "filterType": "day"},
            headers={"Authorization": f"Bearer {test_orphan_token}"},
        )

    assert response.status_code == 404
    assert response.json() == {"detail": "Organization not found!"}


def test_month_before_the_calendar_start_is_a_400(dashboard_client: TestClient):
    response = dashboard_client.get("/api/v1/dashboard/customers/retention", params={"date": "0001-01"})

    assert response.status_code == 400
    assert response.json() == {"detail": "Date is outside the supported range."}
