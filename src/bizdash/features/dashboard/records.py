"""Flat, read-only projections of the records a dashboard report reads.

The repository turns ORM rows into these so the aggregation code never
touches the database and can be exercised with plain lists.
"""
import datetime
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class OrganizationRecord:
    organization_id: str
    name: str
    timezone: str = "UTC"
    country: Optional[str] = None
    date_format: Optional[str] = None


@dataclass(frozen=True)
class InvoiceLineRecord:
    item_id: Optional[str]
    item_name: Optional[str]
    quantity: Any = 0


@dataclass(frozen=True)
class InvoiceRecord:
    invoice_id: str
    created_at: datetime.datetime
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    lines: tuple[InvoiceLineRecord, ...] = ()
    paid_status: Optional[str] = None
    # Amounts are Any: records imported from older systems carry strings or None
    paid_amount: Any = 0
    total_amount: Any = 0
    sale_amount: Any = 0


@dataclass(frozen=True)
class CustomerRecord:
    customer_id: str
    display_name: str
    created_at: datetime.datetime
    status: Optional[str] = None


@dataclass(frozen=True)
class ItemRecord:
    item_id: str
    name: str
    created_at: datetime.datetime
    image: Optional[str] = None
    cost_price: Any = 0
    category: Optional[str] = None


@dataclass(frozen=True)
class StockMovementRecord:
    item_id: str
    created_at: datetime.datetime
    debit_quantity: Any = 0
    credit_quantity: Any = 0


@dataclass(frozen=True)
class ExpenseRecord:
    expense_id: str
    created_at: datetime.datetime
    category: Optional[str] = None
    grand_total: Any = 0
    account_names: tuple[str, ...] = field(default_factory=tuple)
