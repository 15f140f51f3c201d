"""Data models for inventory: items and their append-only stock ledger."""

from tortoise import fields, models
from ...common.models import TimestampMixin, generate_ksuid


class Item(TimestampMixin):
    id = fields.IntField(primary_key=True)
    public_id = fields.CharField(
        max_length=27, unique=True, default=generate_ksuid, db_index=True
    )
    organization: fields.ForeignKeyRelation["Organization"] = fields.ForeignKeyField(
        "models.Organization", related_name="items", on_delete=fields.CASCADE
    )
    name = fields.CharField(max_length=255)
    image = fields.CharField(max_length=500, null=True)
    cost_price = fields.FloatField(default=0.0, description="Purchase cost per unit")
    category = fields.CharField(max_length=100, null=True)

    stock_movements: fields.ReverseRelation["StockMovement"]
    invoice_lines: fields.ReverseRelation["SalesInvoiceLine"]

    def __str__(self):
        return f"{self.name} (Cost: ${self.cost_price:.2f})"

    class Meta:
        table = "items"


class StockMovement(models.Model):  # No TimestampMixin, entries are never updated
    id = fields.IntField(primary_key=True)
    organization: fields.ForeignKeyRelation["Organization"] = fields.ForeignKeyField(
        "models.Organization", related_name="stock_movements", on_delete=fields.CASCADE
    )
    item: fields.ForeignKeyRelation[Item] = fields.ForeignKeyField(
        "models.Item", related_name="stock_movements", on_delete=fields.CASCADE
    )
    # debit adds stock (purchase, opening balance), credit removes it (sale)
    debit_quantity = fields.FloatField(default=0.0)
    credit_quantity = fields.FloatField(default=0.0)
    created_at = fields.DatetimeField(auto_now_add=True)

    def __str__(self):
        return f"+{self.debit_quantity}/-{self.credit_quantity} for item {self.item_id}"

    class Meta:
        table = "stock_movements"
        ordering = ["created_at"]
