"""Document number generation for invoices and work orders (SPK)."""

from __future__ import annotations

import random
from datetime import date

VALID_PREFIXES = ("INV", "SPK")


def generate_unique_number(
    prefix: str,
    today: date | None = None,
    rng: random.Random | None = None,
) -> str:
    """Generate ``PREFIX-YYYYMMDD-NNNN`` with a random 4-digit suffix.

    Uniqueness is enforced by the store (unique column); a collision
    surfaces as a write failure.
    """
    if prefix not in VALID_PREFIXES:
        raise ValueError(f"prefix must be one of {VALID_PREFIXES}")
    today = today or date.today()
    suffix = (rng or random).randint(1000, 9999)
    return f"{prefix}-{today:%Y%m%d}-{suffix}"
