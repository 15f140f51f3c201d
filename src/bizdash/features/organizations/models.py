"""The organization every accounting record is partitioned by."""

from tortoise import fields
from ...common.models import TimestampMixin, generate_ksuid


class Organization(TimestampMixin):
    id = fields.IntField(primary_key=True)
    public_id = fields.CharField(
        max_length=27, unique=True, default=generate_ksuid, db_index=True
    )
    name = fields.CharField(max_length=255)
    timezone = fields.CharField(
        max_length=64, default="UTC", description="IANA zone name, e.g. Asia/Kolkata"
    )
    country = fields.CharField(max_length=100, null=True)
    date_format = fields.CharField(max_length=50, null=True)

    users: fields.ReverseRelation["User"]

    def __str__(self):
        return f"{self.name} ({self.timezone})"

    class Meta:
        table = "organizations"
