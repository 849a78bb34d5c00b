"""Base protocol and types for outbound notification delivery."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Protocol

_NON_DIGITS = re.compile(r"[^0-9]")


@dataclass(frozen=True)
class NotifyResult:
    """Result of sending a notification.

    `retryable` is False for precondition failures (bad number, missing
    configuration) that a retry cannot fix.
    """

    success: bool
    message: str = ""
    retryable: bool = True


class Notifier(Protocol):
    """Protocol for notification channels (WhatsApp gateway)."""

    async def send(self, phone: str, message: str) -> NotifyResult:
        """Deliver a message to a phone-number address.

        Must not raise for delivery failures; report them in the result.
        """
        ...


def normalize_phone(phone: str | None) -> str | None:
    """Strip to digits; return None unless the number is in 62xxxx form."""
    if not phone:
        return None
    digits = _NON_DIGITS.sub("", phone)
    if not digits.startswith("62"):
        return None
    return digits
