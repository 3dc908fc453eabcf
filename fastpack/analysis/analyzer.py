"""
==============================================================================
Shipment Analyzer Module
==============================================================================

Pure bucketing of shipments into packing-floor counters.

Decision Tree:
-------------
    shipment
       │
       ├── logistic_type in rules.buckets ──▶ mapped bucket
       └── anything else (or missing) ──────▶ rules.default_bucket
                         │
                         ▼
       substatus == rules.ready_substatus ?
            │ no                      │ yes
            ▼                         ▼
         PENDING          packed photo attached ?
                              │ no              │ yes
                              ▼                 ▼
                        READY_TO_PRINT    READY_TO_PREPARE

The tree is data (ClassificationRules) so tests and callers can swap it.

==============================================================================
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping

from fastpack.schemas.shipment import (
    LogisticsClass,
    READY_TO_PRINT,
    SELF_SERVICE,
    ShipmentRecord,
)

from .models import AnalysisCounters, BucketCounts


# Module logger
logger = logging.getLogger(__name__)


class Readiness(str, enum.Enum):
    """Where a shipment stands in the packing process."""

    READY_TO_PRINT = "ready_to_print"
    READY_TO_PREPARE = "ready_to_prepare"
    PENDING = "pending"


@dataclass(frozen=True)
class ClassificationRules:
    """
    Lookup table driving the analyzer.

    Attributes:
        buckets: logistic_type value → logistics class
        default_bucket: Class for unmapped or missing logistic types
        ready_substatus: Sub-status meaning "label can be printed"
    """

    buckets: Mapping[str, LogisticsClass] = field(
        default_factory=lambda: {SELF_SERVICE: LogisticsClass.SELF_MANAGED}
    )
    default_bucket: LogisticsClass = LogisticsClass.DISPATCH
    ready_substatus: str = READY_TO_PRINT


DEFAULT_RULES = ClassificationRules()


def classify_logistics(
    shipment: ShipmentRecord,
    rules: ClassificationRules = DEFAULT_RULES
) -> LogisticsClass:
    """Logistics bucket of a shipment."""
    if shipment.logistic_type is None:
        return rules.default_bucket
    return rules.buckets.get(shipment.logistic_type, rules.default_bucket)


def classify_readiness(
    shipment: ShipmentRecord,
    rules: ClassificationRules = DEFAULT_RULES
) -> Readiness:
    """Readiness of a shipment within its bucket."""
    if shipment.substatus != rules.ready_substatus:
        return Readiness.PENDING
    if shipment.has_packed_photo:
        return Readiness.READY_TO_PREPARE
    return Readiness.READY_TO_PRINT


def analyze_shipments(
    shipments: Iterable[ShipmentRecord],
    rules: ClassificationRules = DEFAULT_RULES
) -> AnalysisCounters:
    """
    Count shipments per logistics bucket and readiness.

    Args:
        shipments: Records to analyze (any iterable, consumed once)
        rules: Classification table

    Returns:
        AnalysisCounters; all zero for an empty input

    Example:
        >>> counters = analyze_shipments(records)
        >>> counters.self_managed.pending
        3
    """
    counters = AnalysisCounters.empty()

    for shipment in shipments:
        bucket: BucketCounts = counters.bucket(classify_logistics(shipment, rules))
        readiness = classify_readiness(shipment, rules)

        if readiness is Readiness.READY_TO_PREPARE:
            bucket.ready_to_prepare += 1
        elif readiness is Readiness.READY_TO_PRINT:
            bucket.ready_to_print += 1
        else:
            bucket.pending += 1

        counters.total += 1

    logger.debug(
        f"Analyzed {counters.total} shipments "
        f"(self-managed={counters.self_managed.total}, dispatch={counters.dispatch.total})"
    )
    return counters
