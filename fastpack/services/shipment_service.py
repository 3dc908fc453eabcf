"""
==============================================================================
Shipment Service Module
==============================================================================

Business operations over the shipments backend used by the home screen.

==============================================================================
"""

from __future__ import annotations

import logging

from fastpack.analysis import AnalysisCounters, ClassificationRules, DEFAULT_RULES, analyze_shipments
from fastpack.services.shipment_client import ShipmentBackend


# Module logger
logger = logging.getLogger(__name__)


class ShipmentService:
    """
    Fetch-and-analyze operations.

    Attributes:
        _backend: Shipments backend
        _rules: Classification table for the analyzer
    """

    def __init__(
        self,
        backend: ShipmentBackend,
        rules: ClassificationRules = DEFAULT_RULES
    ) -> None:
        self._backend = backend
        self._rules = rules

    async def packing_summary(self) -> AnalysisCounters:
        """
        Fetch shipments pending packing and count them.

        Raises:
            AppException: When the backend call fails
        """
        shipments = await self._backend.list_for_packing()
        counters = analyze_shipments(shipments, self._rules)
        logger.info(f"📊 Packing summary: {counters.total} shipments")
        return counters
