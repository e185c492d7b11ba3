from __future__ import annotations

import logging
from typing import Dict, Optional

from ..events.bus import SignalBus
from .config import BusConfig

logger = logging.getLogger(__name__)


class ScopeRegistry:
    """One SignalBus per named scope (session, request, ...).

    Engines never leak between scopes; closing a scope clears its engine.
    """

    def __init__(self, config: Optional[BusConfig] = None) -> None:
        self.config = config or BusConfig()
        self._items: Dict[str, SignalBus] = {}

    def open(self, scope: str) -> SignalBus:
        bus = self._items.get(scope)
        if bus is None:
            bus = SignalBus(config=self.config)
            self._items[scope] = bus
            logger.info("Scope opened: %s", scope)
        return bus

    def get(self, scope: str) -> SignalBus:
        return self._items[scope]

    def close(self, scope: str) -> None:
        bus = self._items.pop(scope, None)
        if bus is None:
            return
        bus.clear()
        logger.info("Scope closed: %s", scope)

    def scopes(self) -> list[str]:
        return list(self._items)
