"""Fonnte WhatsApp gateway client."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from agency_erp.notifier.base import NotifyResult, normalize_phone

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.fonnte.com/send"


class FonnteNotifier:
    """Sends WhatsApp messages through the Fonnte HTTP API."""

    def __init__(
        self,
        api_key: str | None,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = 15.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.timeout_seconds = timeout_seconds
        self._client = client

    async def send(self, phone: str, message: str) -> NotifyResult:
        if not self.api_key:
            logger.error("Fonnte API key is not configured")
            return NotifyResult(False, "Fonnte API configuration is incomplete.", retryable=False)

        target = normalize_phone(phone)
        if target is None:
            return NotifyResult(False, "Invalid target number (must be 62xxxx).", retryable=False)

        try:
            response = await self._post({"target": target, "message": message})
        except httpx.HTTPError as e:
            logger.warning("Fonnte request failed: %s", e)
            return NotifyResult(False, f"Connection error: {e}")

        try:
            data: dict[str, Any] = response.json()
        except ValueError:
            data = {}

        if response.is_success and data.get("status") in (True, "success"):
            return NotifyResult(True, "WhatsApp notification sent.")

        logger.warning("Fonnte API error (%s): %s", response.status_code, data)
        reason = data.get("reason") or data.get("message") or "Failed to send notification via Fonnte."
        return NotifyResult(False, str(reason))

    async def _post(self, payload: dict[str, str]) -> httpx.Response:
        headers = {"Authorization": self.api_key or ""}
        if self._client is not None:
            return await self._client.post(self.base_url, json=payload, headers=headers)
        async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
            return await client.post(self.base_url, json=payload, headers=headers)
