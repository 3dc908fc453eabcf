"""
==============================================================================
Home Screen Controller Module
==============================================================================

Loads the packing summary counters and exposes loading / error state.

==============================================================================
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, List, Optional

from fastpack.analysis import AnalysisCounters
from fastpack.core.exceptions import AppException
from fastpack.services.shipment_service import ShipmentService


# Module logger
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HomeState:
    """Summary screen state."""

    loading: bool = False
    counters: Optional[AnalysisCounters] = None
    error_message: Optional[str] = None


class HomeController:
    """
    Summary screen controller.

    Example:
        >>> home = HomeController(ShipmentService(client))
        >>> state = await home.refresh()
        >>> state.counters.total
        12
    """

    def __init__(self, service: ShipmentService) -> None:
        self._service = service
        self._state = HomeState()
        self._listeners: List[Callable[[HomeState], None]] = []

    @property
    def state(self) -> HomeState:
        return self._state

    def subscribe(self, listener: Callable[[HomeState], None]) -> None:
        self._listeners.append(listener)

    async def refresh(self) -> HomeState:
        """Fetch and count shipments pending packing."""
        self._set_state(HomeState(loading=True))

        try:
            counters = await self._service.packing_summary()
        except AppException as e:
            logger.error(f"Packing summary failed: {e.message}")
            self._set_state(HomeState(error_message=e.message))
        else:
            self._set_state(HomeState(counters=counters))

        return self._state

    def error_message_shown(self) -> None:
        """Clear the error once the UI displayed it."""
        self._set_state(replace(self._state, error_message=None))

    def _set_state(self, state: HomeState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.error(f"Home listener error: {e}")
