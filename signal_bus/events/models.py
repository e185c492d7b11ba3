from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Hashable, Optional

Callback = Callable[[Optional[Any]], None]


@dataclass(frozen=True)
class TriggeredSignal:
    """Last completed trigger of an identifier.

    Note:
    - `payload` is forwarded verbatim; casting it is the subscriber's job.
    - `dispatch_id` matches the id logged for that dispatch.
    """

    identifier: Hashable
    payload: Optional[Any]
    triggered_at_utc: str
    dispatch_id: str
