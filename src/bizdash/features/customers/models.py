from enum import Enum

from tortoise import fields
from ...common.models import TimestampMixin, generate_ksuid


class CustomerStatus(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class Customer(TimestampMixin):
    id = fields.IntField(primary_key=True)
    public_id = fields.CharField(
        max_length=27, unique=True, default=generate_ksuid, db_index=True
    )
    organization: fields.ForeignKeyRelation["Organization"] = fields.ForeignKeyField(
        "models.Organization", related_name="customers", on_delete=fields.CASCADE
    )
    display_name = fields.CharField(max_length=255)
    status = fields.CharEnumField(CustomerStatus, default=CustomerStatus.ACTIVE, max_length=20)

    invoices: fields.ReverseRelation["SalesInvoice"]

    def __str__(self):
        return f"{self.display_name} ({self.status})"

    class Meta:
        table = "customers"
