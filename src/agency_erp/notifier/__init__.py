"""Outbound notification channels."""

from agency_erp.notifier.base import Notifier, NotifyResult, normalize_phone
from agency_erp.notifier.fonnte import FonnteNotifier

__all__ = ["Notifier", "NotifyResult", "normalize_phone", "FonnteNotifier"]
