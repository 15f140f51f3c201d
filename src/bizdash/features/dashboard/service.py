"""
Dashboard Service Module

Every dashboard report runs through the same pipeline:

1. check the shape of the requested date,
2. load the organization (its timezone anchors the period),
3. resolve the period, plus the previous one when the report compares,
4. read the datasets the report declares, concurrently and range-narrowed,
5. hand the loaded context to the report's builder.

Which datasets a report reads, how it takes its date and how it builds its
payload live in ``REPORTS``; adding a report means adding a builder and a
row there, not another copy of the pipeline.
"""

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from ...core.config import TOP_CUSTOMERS_LIMIT, TOP_PRODUCTS_LIMIT
from ...core.errors import DashboardError, NotFoundError, UnexpectedError
from ..customers.models import CustomerStatus
from ..sales.models import PaidStatus
from .metrics import (
    average_order_value, churn_rate, count_where, daily_retention, filter_by_period,
    format_money, group_sum, retention_rate, sum_where, to_number, top_n,
)
from .period import DateStyle, Period, as_aware, resolve_month, resolve_period, validate_date_text
from .records import (
    CustomerRecord, ExpenseRecord, InvoiceRecord, ItemRecord, OrganizationRecord,
)
from .repository import DashboardRepository
from .schemas import (
    AverageOrderValueResponse, CustomerRetentionResponse, DailyRetention, DashboardSchema,
    ExpenseByCategoryResponse, ExpenseCategoryTotal, InventoryOverviewResponse, OverviewResponse,
    SalesOverTimeResponse, TopCustomer, TopProduct, TopProductsCustomersResponse,
    TopSellingProductsResponse,
)
from .stock import StockSnapshot, compute_stock_snapshots, stock_status

logger = logging.getLogger(__name__)


class DashboardReport(str, Enum):
    OVERVIEW = "overview"
    SALES_OVER_TIME = "sales_over_time"
    EXPENSE_BY_CATEGORY = "expense_by_category"
    TOP_PRODUCTS_CUSTOMERS = "top_products_customers"
    AVERAGE_ORDER_VALUE = "average_order_value"
    INVENTORY_OVERVIEW = "inventory_overview"
    TOP_SELLING_PRODUCTS = "top_selling_products"
    CUSTOMER_RETENTION = "customer_retention"


class Dataset(str, Enum):
    INVOICES = "invoices"
    CUSTOMERS = "customers"
    ITEMS = "items"
    STOCK = "stock"  # items plus their full movement ledger
    EXPENSES = "expenses"


@dataclass
class ReportContext:
    organization: OrganizationRecord
    period: Period
    previous: Optional[Period] = None
    invoices: list[InvoiceRecord] = field(default_factory=list)
    # Customers created on or before the period end
    customers: list[CustomerRecord] = field(default_factory=list)
    items: list[ItemRecord] = field(default_factory=list)
    snapshots: dict[str, StockSnapshot] = field(default_factory=dict)
    expenses: list[ExpenseRecord] = field(default_factory=list)


@dataclass(frozen=True)
class ReportDefinition:
    date_style: DateStyle
    datasets: frozenset[Dataset]
    build: Callable[[ReportContext], DashboardSchema]
    compares_previous: bool = False


def _is_completed(invoice: InvoiceRecord) -> bool:
    return invoice.paid_status == PaidStatus.COMPLETED


def _is_active(customer: CustomerRecord) -> bool:
    return customer.status == CustomerStatus.ACTIVE


def _current_stock(context: ReportContext, item: ItemRecord) -> float:
    snapshot = context.snapshots.get(item.item_id)
    return snapshot.current_stock if snapshot else 0.0


def _inventory_value(context: ReportContext, items: list[ItemRecord]) -> float:
    return sum((_current_stock(context, item) * to_number(item.cost_price) for item in items), 0.0)


def _top_products(context: ReportContext) -> list[TopProduct]:
    """
    Ranks the items sold in the period by units sold.

    ``total_amount`` adds the sale amount of every invoice the item appears
    on, so an invoice with several items counts towards each of them.
    """
    sold_lines = [(invoice, line) for invoice in context.invoices for line in invoice.lines]
    units = group_sum(sold_lines, lambda pair: pair[1].item_id, lambda pair: pair[1].quantity)
    amounts = group_sum(sold_lines, lambda pair: pair[1].item_id, lambda pair: pair[0].sale_amount)

    line_names: dict[str, str] = {}
    for _, line in sold_lines:
        if line.item_id and line.item_name and line.item_id not in line_names:
            line_names[line.item_id] = line.item_name

    items = {item.item_id: item for item in context.items}
    rows = []
    for item_id, total_sold in units.items():
        item = items.get(item_id)
        rows.append(
            TopProduct(
                item_id=item_id,
                item_name=line_names.get(item_id) or (item.name if item else None) or "Undefined",
                total_sold=total_sold,
                total_amount=amounts.get(item_id, 0.0),
                category=item.category if item else None,
                item_image=item.image if item else None,
                current_stock=stock_status(context.snapshots.get(item_id)),
            )
        )
    return top_n(rows, lambda row: row.total_sold, TOP_PRODUCTS_LIMIT)


def _top_customers(context: ReportContext) -> list[TopCustomer]:
    spent = group_sum(context.invoices, lambda invoice: invoice.customer_id, lambda invoice: invoice.total_amount)
    names: dict[str, str] = {}
    for invoice in context.invoices:
        if invoice.customer_id and invoice.customer_id not in names:
            names[invoice.customer_id] = invoice.customer_name or "Unknown Customer"

    rows = [
        TopCustomer(customer_id=customer_id, customer_name=names.get(customer_id, "Unknown Customer"), total_spent=total)
        for customer_id, total in spent.items()
    ]
    return top_n(rows, lambda row: row.total_spent, TOP_CUSTOMERS_LIMIT)


def build_overview(context: ReportContext) -> OverviewResponse:
    new_items = filter_by_period(context.items, context.period)
    return OverviewResponse(
        total_revenue=sum_where(context.invoices, _is_completed, "paid_amount"),
        total_inventory_value=_inventory_value(context, new_items),
        total_expenses=sum_where(context.expenses, None, "grand_total"),
        new_customer=len(filter_by_period(context.customers, context.period)),
        total_sales=sum_where(context.invoices, None, "total_amount"),
    )


def build_sales_over_time(context: ReportContext) -> SalesOverTimeResponse:
    return SalesOverTimeResponse(total_sales=sum_where(context.invoices, None, "total_amount"))


def build_expense_by_category(context: ReportContext) -> ExpenseByCategoryResponse:
    totals = group_sum(context.expenses, lambda expense: expense.category, lambda expense: expense.grand_total)
    return ExpenseByCategoryResponse(
        category=[ExpenseCategoryTotal(category=name, total=format_money(total)) for name, total in totals.items()]
    )


def build_top_products_customers(context: ReportContext) -> TopProductsCustomersResponse:
    return TopProductsCustomersResponse(
        top_products=_top_products(context),
        top_customers=_top_customers(context),
    )


def build_top_selling_products(context: ReportContext) -> TopSellingProductsResponse:
    return TopSellingProductsResponse(top_products=_top_products(context))


def build_average_order_value(context: ReportContext) -> AverageOrderValueResponse:
    total_sale_amount = sum_where(context.invoices, None, "sale_amount")
    return AverageOrderValueResponse(
        average_order_value=average_order_value(total_sale_amount, len(context.invoices))
    )


def build_inventory_overview(context: ReportContext) -> InventoryOverviewResponse:
    new_items = filter_by_period(context.items, context.period)
    return InventoryOverviewResponse(
        total_inventory_value=_inventory_value(context, new_items),
        total_item_count=sum((_current_stock(context, item) for item in new_items), 0.0),
        total_out_of_stock=count_where(new_items, lambda item: _current_stock(context, item) < 1),
        new_items=len(new_items),
    )


def build_customer_retention(context: ReportContext) -> CustomerRetentionResponse:
    """
    Month over month retention and churn, plus a day by day retention series.

    The previous period's active customers seed both rates. The formulas are
    not clamped: a month that gains more customers than it had reports a
    negative churn, and heavy sign-ups push retention below zero.
    """
    period, previous = context.period, context.previous or context.period.previous()
    prev_active = count_where(
        context.customers,
        lambda customer: _is_active(customer) and as_aware(customer.created_at) <= previous.end,
    )
    current_active = count_where(context.customers, _is_active)
    new_customers = filter_by_period(context.customers, period)
    new_by_day = Counter(period.local_date(customer.created_at) for customer in new_customers)

    series = daily_retention(list(period.days()), prev_active, new_by_day)
    return CustomerRetentionResponse(
        retention_rate=retention_rate(prev_active, len(new_customers)),
        churn_rate=churn_rate(prev_active, current_active),
        daily_retention=[DailyRetention(date=day.isoformat(), retention_rate=rate) for day, rate in series],
    )


REPORTS: dict[DashboardReport, ReportDefinition] = {
    DashboardReport.OVERVIEW: ReportDefinition(
        DateStyle.FULL_DATE,
        frozenset({Dataset.INVOICES, Dataset.CUSTOMERS, Dataset.STOCK, Dataset.EXPENSES}),
        build_overview,
    ),
    DashboardReport.SALES_OVER_TIME: ReportDefinition(
        DateStyle.FULL_DATE, frozenset({Dataset.INVOICES}), build_sales_over_time
    ),
    DashboardReport.EXPENSE_BY_CATEGORY: ReportDefinition(
        DateStyle.FULL_DATE, frozenset({Dataset.EXPENSES}), build_expense_by_category
    ),
    DashboardReport.TOP_PRODUCTS_CUSTOMERS: ReportDefinition(
        DateStyle.FULL_DATE, frozenset({Dataset.INVOICES, Dataset.STOCK}), build_top_products_customers
    ),
    DashboardReport.AVERAGE_ORDER_VALUE: ReportDefinition(
        DateStyle.FULL_DATE, frozenset({Dataset.INVOICES}), build_average_order_value
    ),
    DashboardReport.INVENTORY_OVERVIEW: ReportDefinition(
        DateStyle.MONTH, frozenset({Dataset.STOCK}), build_inventory_overview
    ),
    DashboardReport.TOP_SELLING_PRODUCTS: ReportDefinition(
        DateStyle.MONTH, frozenset({Dataset.INVOICES, Dataset.STOCK}), build_top_selling_products
    ),
    DashboardReport.CUSTOMER_RETENTION: ReportDefinition(
        DateStyle.MONTH, frozenset({Dataset.CUSTOMERS}), build_customer_retention, compares_previous=True
    ),
}


async def load_context(
    definition: ReportDefinition,
    repository: DashboardRepository,
    organization: OrganizationRecord,
    period: Period,
) -> ReportContext:
    """Reads the datasets a report declares, all at once."""
    reads = {}
    if Dataset.INVOICES in definition.datasets:
        reads[Dataset.INVOICES] = repository.list_invoices(period)
    if Dataset.CUSTOMERS in definition.datasets:
        reads[Dataset.CUSTOMERS] = repository.list_customers(period.end)
    if Dataset.ITEMS in definition.datasets or Dataset.STOCK in definition.datasets:
        reads[Dataset.ITEMS] = repository.list_items()
    if Dataset.STOCK in definition.datasets:
        reads[Dataset.STOCK] = repository.list_stock_movements()
    if Dataset.EXPENSES in definition.datasets:
        reads[Dataset.EXPENSES] = repository.list_expenses(period)

    loaded = dict(zip(reads.keys(), await asyncio.gather(*reads.values())))

    context = ReportContext(
        organization=organization,
        period=period,
        previous=period.previous() if definition.compares_previous else None,
        invoices=loaded.get(Dataset.INVOICES, []),
        customers=loaded.get(Dataset.CUSTOMERS, []),
        items=loaded.get(Dataset.ITEMS, []),
        expenses=loaded.get(Dataset.EXPENSES, []),
    )
    if Dataset.STOCK in loaded:
        context.snapshots = compute_stock_snapshots(context.items, loaded[Dataset.STOCK])

    logger.debug(
        f"Loaded {len(context.invoices)} invoices, {len(context.customers)} customers, "
        f"{len(context.items)} items, {len(context.expenses)} expenses"
    )
    return context


async def generate_report(
    report: DashboardReport,
    repository: DashboardRepository,
    date_text: Optional[str],
    filter_type: Optional[str] = None,
) -> DashboardSchema:
    """
    Runs one dashboard report for the repository's organization.

    Args:
        report: Which report to build.
        repository: Reads scoped to the requesting organization.
        date_text: The requested date; its expected form depends on the report.
        filter_type: "day", "month" or "year" for reports that take one.

    Returns:
        DashboardSchema: The report payload.

    Raises:
        InvalidInputError: Malformed date, unknown filter type or month.
        NotFoundError: The organization does not exist.
        UnexpectedError: A read or the aggregation failed; the cause is logged.
    """
    definition = REPORTS[report]
    validate_date_text(date_text, definition.date_style)

    try:
        organization = await repository.get_organization()
        if organization is None:
            raise NotFoundError("Organization not found!")

        if definition.date_style is DateStyle.MONTH:
            period = resolve_month(date_text, organization.timezone)
        else:
            period = resolve_period(filter_type, date_text, organization.timezone)
        logger.info(
            f"{report.value} for organization {organization.organization_id}: "
            f"{period.start.isoformat()} .. {period.end.isoformat()}"
        )

        context = await load_context(definition, repository, organization, period)
        return definition.build(context)
    except DashboardError:
        raise
    except Exception as e:
        logger.error(f"Error generating {report.value} report: {e}", exc_info=True)
        raise UnexpectedError() from e
