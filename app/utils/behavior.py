"""
Per-user behavioral profile used as the baseline for fraud scoring.

The profile is recomputed from scratch on every build and written over the
stored one; it is never patched incrementally.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from app.db import dynamo
from app.utils.stats import mean

logger = logging.getLogger(__name__)

PROFILE_WINDOW_DAYS = 90
MAX_COMMON_MERCHANTS = 20
MAX_COMMON_LOCATIONS = 10


def _distinct(values: List[Optional[str]], limit: Optional[int] = None) -> List[str]:
    # first-seen order, not ranked by frequency
    seen: Dict[str, None] = {}
    for value in values:
        if value:
            seen.setdefault(value, None)
    distinct = list(seen)
    return distinct[:limit] if limit is not None else distinct


def empty_profile(user_id: str, now: datetime) -> Dict[str, Any]:
    """Cold-start profile: no baseline statistics yet."""
    return {
        "user_id": user_id,
        "avg_transaction_amount": None,
        "transaction_frequency": None,
        "common_merchants": None,
        "common_locations": None,
        "common_categories": None,
        "updated_at": now.isoformat(),
    }


def build_profile(user_id: str, expenses: List[Dict[str, Any]], now: datetime) -> Dict[str, Any]:
    """Summarise legitimate expenses into a behavioral profile."""
    if not expenses:
        return empty_profile(user_id, now)

    amounts = [float(exp.get("amount", 0)) for exp in expenses]
    return {
        "user_id": user_id,
        "avg_transaction_amount": mean(amounts),
        "transaction_frequency": len(expenses) / PROFILE_WINDOW_DAYS,
        "common_merchants": _distinct([exp.get("merchant") for exp in expenses], MAX_COMMON_MERCHANTS),
        "common_locations": _distinct([exp.get("location") for exp in expenses], MAX_COMMON_LOCATIONS),
        "common_categories": _distinct([exp.get("category") for exp in expenses]),
        "updated_at": now.isoformat(),
    }


class BehaviorProfiler:
    def __init__(self, store=dynamo) -> None:
        self.store = store

    def rebuild(self, user_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.utcnow()
        since = now - timedelta(days=PROFILE_WINDOW_DAYS)
        expenses = [
            exp for exp in self.store.get_expenses(user_id, start=since)
            if not exp.get("is_suspicious")
        ]

        profile = build_profile(user_id, expenses, now)
        if not self.store.put_user_behavior(profile):
            logger.warning(f"Could not persist behavioral profile for user {user_id}")
        logger.info(f"Rebuilt behavioral profile for user {user_id} from {len(expenses)} expenses")
        return profile

    def get_or_build(self, user_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        profile = self.store.get_user_behavior(user_id)
        if profile is None:
            profile = self.rebuild(user_id, now)
        return profile
