"""
==============================================================================
Analysis Package
==============================================================================

Client-side aggregation of shipments into packing counters.

Usage:
------
    from fastpack.analysis import analyze_shipments

    counters = analyze_shipments(shipments)
    print(counters.dispatch.ready_to_print)

==============================================================================
"""

from .models import AnalysisCounters, BucketCounts
from .analyzer import (
    ClassificationRules,
    DEFAULT_RULES,
    Readiness,
    analyze_shipments,
    classify_logistics,
    classify_readiness,
)

__all__ = [
    "AnalysisCounters",
    "BucketCounts",
    "ClassificationRules",
    "DEFAULT_RULES",
    "Readiness",
    "analyze_shipments",
    "classify_logistics",
    "classify_readiness",
]
