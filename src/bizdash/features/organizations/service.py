"""Lookups for organizations."""
from typing import Optional

from .models import Organization


async def get_organization_by_public_id(public_id: str) -> Optional[Organization]:
    return await Organization.get_or_none(public_id=public_id)


async def create_organization(
    name: str,
    timezone: str = "UTC",
    country: Optional[str] = None,
    date_format: Optional[str] = None,
) -> Organization:
    return await Organization.create(
        name=name, timezone=timezone, country=country, date_format=date_format
    )
