from tortoise import fields
from ...common.models import TimestampMixin, generate_ksuid


class Expense(TimestampMixin):
    id = fields.IntField(primary_key=True)
    public_id = fields.CharField(
        max_length=27, unique=True, default=generate_ksuid, db_index=True
    )
    organization: fields.ForeignKeyRelation["Organization"] = fields.ForeignKeyField(
        "models.Organization", related_name="expenses", on_delete=fields.CASCADE
    )
    category = fields.CharField(max_length=100, null=True)
    grand_total = fields.FloatField(default=0.0)

    lines: fields.ReverseRelation["ExpenseLine"]

    def __str__(self):
        return f"Expense {self.public_id} ({self.category or 'uncategorized'})"

    class Meta:
        table = "expenses"


class ExpenseLine(TimestampMixin):
    id = fields.IntField(primary_key=True)
    expense: fields.ForeignKeyRelation[Expense] = fields.ForeignKeyField(
        "models.Expense", related_name="lines", on_delete=fields.CASCADE
    )
    account_name = fields.CharField(max_length=255)
    amount = fields.FloatField(default=0.0)

    class Meta:
        table = "expense_lines"
