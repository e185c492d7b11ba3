from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .common.errors import InvalidArgumentError, SignalBusError
from .core.config import BusConfig, ConfigManager
from .core.registry import ScopeRegistry


def create_app(config: Optional[BusConfig] = None) -> FastAPI:
    """Host app wiring: config on app.state.config, per-request engines via app.state.scopes.

    Routes that need a bus declare ``Depends(provide_signal_bus)``.
    """
    cfg = config or ConfigManager().load()
    logging.getLogger("signal_bus").setLevel(cfg.log_level)

    app = FastAPI(title="Signal Bus Host")
    app.state.config = cfg
    app.state.scopes = ScopeRegistry(config=cfg)

    @app.exception_handler(SignalBusError)
    async def signal_bus_error_handler(request: Request, exc: SignalBusError):
        status = 400 if isinstance(exc, InvalidArgumentError) else 500
        return JSONResponse(
            status_code=status,
            content={
                "status": "error",
                "code": exc.code,
                "message": exc.message,
                "scope": getattr(request.state, "signal_scope", None),
                "data": exc.data,
            },
        )

    return app
