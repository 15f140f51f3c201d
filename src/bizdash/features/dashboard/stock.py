"""Current stock per item, folded from the stock movement ledger.

The balance is always as of now: it is not bounded by the report period.
Reports that want "inventory acquired in period" filter the *items* by
their creation date and still read the full-history balance.
"""
import datetime
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, Optional

from .metrics import to_number
from .period import as_aware
from .records import ItemRecord, StockMovementRecord

logger = logging.getLogger(__name__)

IN_STOCK = "In Stock"
OUT_OF_STOCK = "Out of Stock"
UNKNOWN_STOCK = "undefined"


@dataclass(frozen=True)
class StockSnapshot:
    item_id: str
    current_stock: float = 0.0
    last_movement_at: Optional[datetime.datetime] = None
    has_ledger_data: bool = False


def compute_stock_snapshots(
    items: Iterable[ItemRecord],
    movements: Iterable[StockMovementRecord],
) -> dict[str, StockSnapshot]:
    """
    Folds the movements of each item into a stock snapshot.

    ``current_stock`` is the sum of debits minus the sum of credits over the
    item's whole ledger. It is not clamped, so an oversold item reports a
    negative balance. Items that never moved get a zero balance and a
    warning; movements for items not in ``items`` are ignored.

    Args:
        items: The items to report on.
        movements: Ledger entries, in any order.

    Returns:
        dict[str, StockSnapshot]: Snapshot per item id, in ``items`` order.
    """
    debits: dict[str, float] = defaultdict(float)
    credits: dict[str, float] = defaultdict(float)
    last_seen: dict[str, datetime.datetime] = {}

    for movement in movements:
        item_id = movement.item_id
        debits[item_id] += to_number(movement.debit_quantity)
        credits[item_id] += to_number(movement.credit_quantity)
        created_at = as_aware(movement.created_at)
        if item_id not in last_seen or created_at > last_seen[item_id]:
            last_seen[item_id] = created_at

    snapshots = {}
    for item in items:
        if item.item_id not in last_seen:
            logger.warning(f"No stock movements found for item {item.item_id}")
            snapshots[item.item_id] = StockSnapshot(item_id=item.item_id)
            continue
        snapshots[item.item_id] = StockSnapshot(
            item_id=item.item_id,
            current_stock=debits[item.item_id] - credits[item.item_id],
            last_movement_at=last_seen[item.item_id],
            has_ledger_data=True,
        )
    return snapshots


def stock_status(snapshot: Optional[StockSnapshot]) -> str:
    if snapshot is None:
        return UNKNOWN_STOCK
    return OUT_OF_STOCK if snapshot.current_stock < 1 else IN_STOCK
