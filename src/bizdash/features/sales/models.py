from enum import Enum

from tortoise import fields
from ...common.models import TimestampMixin, generate_ksuid


class PaidStatus(str, Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"
    OVERDUE = "Overdue"


class SalesInvoice(TimestampMixin):
    id = fields.IntField(primary_key=True)
    public_id = fields.CharField(
        max_length=27, unique=True, default=generate_ksuid, db_index=True
    )
    organization: fields.ForeignKeyRelation["Organization"] = fields.ForeignKeyField(
        "models.Organization", related_name="sales_invoices", on_delete=fields.CASCADE
    )
    customer: fields.ForeignKeyNullableRelation["Customer"] = fields.ForeignKeyField(
        "models.Customer", related_name="invoices", on_delete=fields.SET_NULL, null=True
    )
    paid_status = fields.CharEnumField(PaidStatus, default=PaidStatus.PENDING, max_length=20)
    paid_amount = fields.FloatField(default=0.0)
    total_amount = fields.FloatField(default=0.0)
    sale_amount = fields.FloatField(default=0.0, description="Amount before tax and discounts")

    lines: fields.ReverseRelation["SalesInvoiceLine"]

    def __str__(self):
        return f"Invoice {self.public_id} - {self.paid_status} ({self.total_amount:.2f})"

    class Meta:
        table = "sales_invoices"


class SalesInvoiceLine(TimestampMixin):
    id = fields.IntField(primary_key=True)
    invoice: fields.ForeignKeyRelation[SalesInvoice] = fields.ForeignKeyField(
        "models.SalesInvoice", related_name="lines", on_delete=fields.CASCADE
    )
    item: fields.ForeignKeyNullableRelation["Item"] = fields.ForeignKeyField(
        "models.Item", related_name="invoice_lines", on_delete=fields.SET_NULL, null=True
    )
    quantity = fields.FloatField(default=0.0)

    class Meta:
        table = "sales_invoice_lines"
