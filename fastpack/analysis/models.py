"""
==============================================================================
Analysis Models Module
==============================================================================

Counter types produced by the shipment analyzer.

==============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from fastpack.schemas.shipment import LogisticsClass


@dataclass
class BucketCounts:
    """Readiness counts for one logistics bucket."""

    ready_to_print: int = 0
    ready_to_prepare: int = 0
    pending: int = 0

    @property
    def total(self) -> int:
        return self.ready_to_print + self.ready_to_prepare + self.pending


@dataclass
class AnalysisCounters:
    """
    Aggregate counts over a list of shipments.

    Attributes:
        total: Number of shipments analyzed
        self_managed: Counts for self-service pickups
        dispatch: Counts for every other logistic type

    The bucket totals always add up to ``total``.
    """

    total: int = 0
    self_managed: BucketCounts = field(default_factory=BucketCounts)
    dispatch: BucketCounts = field(default_factory=BucketCounts)

    @classmethod
    def empty(cls) -> "AnalysisCounters":
        """All counters at zero."""
        return cls()

    def bucket(self, logistics_class: LogisticsClass) -> BucketCounts:
        """Counts for a logistics class."""
        if logistics_class is LogisticsClass.SELF_MANAGED:
            return self.self_managed
        return self.dispatch

    def to_flat_dict(self) -> Dict[str, int]:
        """
        Flatten to the key names used by the packing summary screen.

        Flex* keys hold self-managed counts, Desp* keys hold dispatch counts.
        """
        return {
            "TotalEnvios": self.total,
            "FlexReadyToPrint": self.self_managed.ready_to_print,
            "FlexReadyToPrepare": self.self_managed.ready_to_prepare,
            "FlexPendientes": self.self_managed.pending,
            "DespReadyToPrint": self.dispatch.ready_to_print,
            "DespReadyToPrepare": self.dispatch.ready_to_prepare,
            "DespPendientes": self.dispatch.pending,
        }
