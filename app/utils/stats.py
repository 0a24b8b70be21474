"""
Small numeric helpers shared by the analytics engines.

All functions accept plain sequences of numbers and return floats; empty
input never raises.
"""
from __future__ import annotations

import math
import statistics
from typing import Any, Dict, Iterable, List, Optional, Sequence


def total(values: Iterable[float]) -> float:
    return float(sum(values))


def mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return statistics.fmean(values)


def std_dev(values: Sequence[float]) -> float:
    """Population standard deviation (0 for empty input)."""
    if not values:
        return 0.0
    return statistics.pstdev(values)


def median(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return float(statistics.median(values))


def percentage(value: float, whole: float) -> float:
    if whole == 0:
        return 0.0
    return (value / whole) * 100


def percentage_change(old_value: float, new_value: float) -> float:
    if old_value == 0:
        return 100.0 if new_value > 0 else 0.0
    return ((new_value - old_value) / old_value) * 100


def detect_outliers(values: Sequence[float], threshold: float = 2.0) -> List[float]:
    """
    Values whose Z-score magnitude exceeds ``threshold``.
    A constant sequence has no spread and therefore no outliers.
    """
    avg = mean(values)
    deviation = std_dev(values)
    if deviation == 0:
        return []
    return [value for value in values if abs((value - avg) / deviation) > threshold]


def group_by(items: Iterable[Dict[str, Any]], key: str, default: Optional[str] = None) -> Dict[str, List[Dict[str, Any]]]:
    """
    Partition ``items`` by the string value of ``item[key]``, keeping first-seen
    order. Items with a missing or empty value are grouped under ``default``.
    """
    groups: Dict[str, List[Dict[str, Any]]] = {}
    for item in items:
        value = item.get(key)
        group_key = str(value) if value not in (None, "") else str(default)
        groups.setdefault(group_key, []).append(item)
    return groups


def round2(value: float) -> float:
    """Round half-up to two decimals, the way amounts are displayed."""
    return math.floor(value * 100 + 0.5) / 100
