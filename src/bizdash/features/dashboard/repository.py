"""Read access to the records dashboard reports aggregate.

Every read is scoped to one organization and, where the report allows it,
to a date range, so the store does the narrowing instead of the report
loading whole tables. ``InMemoryDashboardRepository`` applies the exact
same inclusive range semantics in Python and is the reference the SQL
version is checked against.
"""
import datetime
import logging
from typing import Any, Iterable, Optional, Protocol

from ..customers.models import Customer
from ..expenses.models import Expense
from ..inventory.models import Item, StockMovement
from ..organizations.models import Organization
from ..sales.models import SalesInvoice
from .metrics import filter_by_period, filter_until
from .period import UTC, Period, as_aware
from .records import (
    CustomerRecord, ExpenseRecord, InvoiceLineRecord, InvoiceRecord,
    ItemRecord, OrganizationRecord, StockMovementRecord,
)

logger = logging.getLogger(__name__)


class DashboardRepository(Protocol):
    organization_id: str

    async def get_organization(self) -> Optional[OrganizationRecord]: ...

    async def list_invoices(self, period: Period) -> list[InvoiceRecord]: ...

    async def list_customers(self, until: datetime.datetime) -> list[CustomerRecord]: ...

    async def list_items(self) -> list[ItemRecord]: ...

    async def list_stock_movements(self) -> list[StockMovementRecord]: ...

    async def list_expenses(self, period: Period) -> list[ExpenseRecord]: ...


def _enum_value(value: Any) -> Any:
    return getattr(value, "value", value)


class TortoiseDashboardRepository:
    """Reads through Tortoise ORM. Range bounds are sent to the store in UTC."""

    def __init__(self, organization_id: str):
        self.organization_id = organization_id

    async def get_organization(self) -> Optional[OrganizationRecord]:
        organization = await Organization.get_or_none(public_id=self.organization_id)
        if organization is None:
            return None
        return OrganizationRecord(
            organization_id=organization.public_id,
            name=organization.name,
            timezone=organization.timezone or "UTC",
            country=organization.country,
            date_format=organization.date_format,
        )

    async def list_invoices(self, period: Period) -> list[InvoiceRecord]:
        start, end = period.utc_bounds()
        invoices = await SalesInvoice.filter(
            organization__public_id=self.organization_id,
            created_at__gte=start,
            created_at__lte=end,
        ).prefetch_related("customer", "lines__item").order_by("created_at", "id")

        records = []
        for invoice in invoices:
            lines = tuple(
                InvoiceLineRecord(
                    item_id=line.item.public_id if line.item else None,
                    item_name=line.item.name if line.item else None,
                    quantity=line.quantity,
                )
                for line in sorted(invoice.lines, key=lambda line: line.id)
            )
            records.append(
                InvoiceRecord(
                    invoice_id=invoice.public_id,
                    created_at=invoice.created_at,
                    customer_id=invoice.customer.public_id if invoice.customer else None,
                    customer_name=invoice.customer.display_name if invoice.customer else None,
                    lines=lines,
                    paid_status=_enum_value(invoice.paid_status),
                    paid_amount=invoice.paid_amount,
                    total_amount=invoice.total_amount,
                    sale_amount=invoice.sale_amount,
                )
            )
        logger.debug(f"Fetched {len(records)} invoices for {self.organization_id} between {start} and {end}")
        return records

    async def list_customers(self, until: datetime.datetime) -> list[CustomerRecord]:
        customers = await Customer.filter(
            organization__public_id=self.organization_id,
            created_at__lte=as_aware(until).astimezone(UTC),
        ).order_by("created_at", "id")
        return [
            CustomerRecord(
                customer_id=customer.public_id,
                display_name=customer.display_name,
                created_at=customer.created_at,
                status=_enum_value(customer.status),
            )
            for customer in customers
        ]

    async def list_items(self) -> list[ItemRecord]:
        items = await Item.filter(organization__public_id=self.organization_id).order_by("created_at", "id")
        return [
            ItemRecord(
                item_id=item.public_id,
                name=item.name,
                created_at=item.created_at,
                image=item.image,
                cost_price=item.cost_price,
                category=item.category,
            )
            for item in items
        ]

    async def list_stock_movements(self) -> list[StockMovementRecord]:
        rows = await StockMovement.filter(organization__public_id=self.organization_id).values(
            "debit_quantity", "credit_quantity", "created_at", item_public_id="item__public_id"
        )
        return [
            StockMovementRecord(
                item_id=row["item_public_id"],
                created_at=row["created_at"],
                debit_quantity=row["debit_quantity"],
                credit_quantity=row["credit_quantity"],
            )
            for row in rows
        ]

    async def list_expenses(self, period: Period) -> list[ExpenseRecord]:
        start, end = period.utc_bounds()
        expenses = await Expense.filter(
            organization__public_id=self.organization_id,
            created_at__gte=start,
            created_at__lte=end,
        ).prefetch_related("lines").order_by("created_at", "id")
        return [
            ExpenseRecord(
                expense_id=expense.public_id,
                created_at=expense.created_at,
                category=expense.category,
                grand_total=expense.grand_total,
                account_names=tuple(line.account_name for line in expense.lines),
            )
            for expense in expenses
        ]


class InMemoryDashboardRepository:
    """Serves already-loaded records with the same range semantics as the store."""

    def __init__(
        self,
        organization: Optional[OrganizationRecord],
        invoices: Iterable[InvoiceRecord] = (),
        customers: Iterable[CustomerRecord] = (),
        items: Iterable[ItemRecord] = (),
        stock_movements: Iterable[StockMovementRecord] = (),
        expenses: Iterable[ExpenseRecord] = (),
    ):
        self.organization = organization
        self.organization_id = organization.organization_id if organization else ""
        self.invoices = list(invoices)
        self.customers = list(customers)
        self.items = list(items)
        self.stock_movements = list(stock_movements)
        self.expenses = list(expenses)

    async def get_organization(self) -> Optional[OrganizationRecord]:
        return self.organization

    async def list_invoices(self, period: Period) -> list[InvoiceRecord]:
        return filter_by_period(self.invoices, period)

    async def list_customers(self, until: datetime.datetime) -> list[CustomerRecord]:
        return filter_until(self.customers, until)

    async def list_items(self) -> list[ItemRecord]:
        return list(self.items)

    async def list_stock_movements(self) -> list[StockMovementRecord]:
        return list(self.stock_movements)

    async def list_expenses(self, period: Period) -> list[ExpenseRecord]:
        return filter_by_period(self.expenses, period)
