from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(eq=False)
class SignalBusError(Exception):
    """Base error for the signal bus; carries a stable code for API responses."""
    code: str
    message: str
    data: Optional[dict[str, Any]] = None

    def __str__(self) -> str:
        return self.message


class InvalidArgumentError(SignalBusError, ValueError):
    """An identifier or callback was missing or unusable."""

    def __init__(self, argument: str, reason: str = "must not be None") -> None:
        super().__init__(
            code="INVALID_ARGUMENT",
            message=f"Argument '{argument}' {reason}",
            data={"argument": argument},
        )
        self.argument = argument
