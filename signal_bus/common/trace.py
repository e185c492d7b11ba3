from __future__ import annotations

import uuid


def new_id() -> str:
    """Opaque hex identifier for dispatches and request scopes."""
    return uuid.uuid4().hex


def new_scope_name(prefix: str = "request") -> str:
    """Scope names look like ``request-<hex>`` so they stay readable in logs."""
    return f"{prefix}-{new_id()}"
