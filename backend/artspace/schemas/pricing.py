# backend/artspace/schemas/pricing.py
"""Pricing quote schema."""

from .base import Money, StandardizedModel


class PriceQuote(StandardizedModel):
    resource_id: str
    role: str
    participant_count: int
    unit_price: Money
    amount: Money
    currency: str
    free_access: bool
