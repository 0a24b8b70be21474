"""
Optional external recommendation provider.

Disabled unless both FINANCE_API_URL and FINANCE_API_KEY are configured.
Every failure is logged and reported as "no recommendations"; callers never
see an exception from here.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)


class ExternalRecommendationClient:
    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 5.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls) -> "ExternalRecommendationClient":
        return cls(
            url=settings.FINANCE_API_URL,
            api_key=settings.FINANCE_API_KEY,
            timeout=settings.FINANCE_API_TIMEOUT_SECONDS,
        )

    @property
    def enabled(self) -> bool:
        return bool(self.url and self.api_key)

    def fetch(self, user_id: str, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        if not self.enabled:
            return None

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "x-api-key": self.api_key,
        }
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(self.url, json={"userId": user_id, **payload}, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"External recommendations request failed: {str(e)}")
            return None

        if not response.is_success:
            logger.error(
                f"External recommendations responded with status {response.status_code}: {response.text[:200]}"
            )
            return None

        try:
            body = response.json()
        except ValueError:
            logger.error("External recommendations returned a non-JSON body")
            return None
        return body if isinstance(body, dict) else None


def normalize_recommendations(items: List[Any]) -> List[Dict[str, Any]]:
    """Map loosely named provider fields onto the local recommendation shape."""
    normalized = []
    for idx, item in enumerate(items):
        if not isinstance(item, dict):
            continue
        normalized.append({
            "id": f"external-{idx}",
            "title": item.get("title") or item.get("heading") or "Recommendation",
            "description": item.get("description") or item.get("body") or item.get("text") or "",
            "priority": item.get("priority") or "LOW",
            "category": item.get("category") or "EXTERNAL",
            "impact": item.get("impact") or "LOW",
            "actionable": item.get("actionable") is not False,
            "potential_savings": item.get("potential_savings", item.get("potentialSavings")),
            "type": item.get("type") or "EXTERNAL",
        })
    return normalized
