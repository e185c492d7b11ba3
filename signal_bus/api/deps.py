from __future__ import annotations

import logging
from typing import Iterator

from fastapi import Request

from ..common.trace import new_scope_name
from ..core.registry import ScopeRegistry
from ..events.bus import SignalBus

logger = logging.getLogger(__name__)


def provide_signal_bus(request: Request) -> Iterator[SignalBus]:
    """FastAPI dependency: a fresh SignalBus for the lifetime of one request."""
    scopes: ScopeRegistry = request.app.state.scopes
    scope = new_scope_name()
    request.state.signal_scope = scope
    logger.debug("Signal scope %s bound to %s %s", scope, request.method, request.url.path)
    try:
        yield scopes.open(scope)
    except Exception:
        logger.warning("Request failed inside signal scope %s", scope, exc_info=True)
        raise
    finally:
        scopes.close(scope)
