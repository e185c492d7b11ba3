from __future__ import annotations

import logging
from collections import deque
from typing import Any, Callable, Deque, Dict, Hashable, List, Optional

from ..common.errors import InvalidArgumentError
from ..common.time_util import utc_now_iso
from ..common.trace import new_id
from ..core.config import BusConfig
from .models import Callback, TriggeredSignal

logger = logging.getLogger(__name__)

# Distinguishes "argument omitted" from an explicit None in the overloaded calls.
_UNSET: Any = object()


class SignalBus:
    """In-process signal bus: callbacks subscribe to an identifier and run when it is triggered.

    Rules:
    - Identifiers are routed by value equality (any hashable works, like a dict key).
    - A trigger iterates a snapshot of the subscribers taken when it starts.
    - subscribe / unsubscribe / clear issued while any trigger is running are
      queued and replayed in order once the outermost trigger has finished.
    - The payload of the last completed trigger per identifier is kept for
      retroactive subscribers until clear().
    - Not thread-safe; one instance is one independent signal space.
    """

    def __init__(self, config: Optional[BusConfig] = None) -> None:
        self.config = config or BusConfig()
        self._subs: Dict[Hashable, List[Callback]] = {}
        self._deferred: Deque[Callable[[], None]] = deque()
        self._triggered: Dict[Hashable, TriggeredSignal] = {}
        self._depth = 0

    @property
    def dispatching(self) -> bool:
        return self._depth > 0

    @staticmethod
    def _check_identifier(identifier: Hashable) -> None:
        if identifier is None:
            raise InvalidArgumentError("identifier")
        try:
            hash(identifier)
        except TypeError:
            raise InvalidArgumentError("identifier", "must be hashable") from None

    @staticmethod
    def _check_callback(callback: Callback) -> None:
        if callback is None:
            raise InvalidArgumentError("callback")
        if not callable(callback):
            raise InvalidArgumentError("callback", f"must be callable, got {type(callback).__name__}")

    def _apply(self, action: Callable[[], None], what: str, *args: Any) -> None:
        # `what` and `args` only feed the lazy debug message
        if self._depth:
            self._deferred.append(action)
            logger.debug("Deferred " + what + " (queued: %d)", *args, len(self._deferred))
        else:
            action()

    # ── subscriptions ──────────────────────────────────────────

    def subscribe(self, identifier: Hashable, callback: Callback) -> None:
        """Register `callback` for future triggers of `identifier`.

        The same callback may be registered more than once; each registration
        is invoked (and later removed) separately.
        """
        self._check_identifier(identifier)
        self._check_callback(callback)
        self._apply(lambda: self._subscribe_now(identifier, callback), "subscribe to %r", identifier)

    def subscribe_retroactively(self, identifier: Hashable, callback: Callback) -> None:
        """Subscribe, then replay the last payload to `callback` if `identifier` already fired.

        Only the new callback is invoked. The replay is immediate even when the
        registration itself is deferred by a running trigger.
        """
        self.subscribe(identifier, callback)

        record = self._triggered.get(identifier)
        if record is not None:
            logger.debug("Replaying %r to retroactive subscriber (dispatch_id: %s)", identifier, record.dispatch_id)
            callback(record.payload)

    def _subscribe_now(self, identifier: Hashable, callback: Callback) -> None:
        self._subs.setdefault(identifier, []).append(callback)
        logger.debug("Subscribed %s to %r", getattr(callback, "__qualname__", callback), identifier)

    def unsubscribe(self, identifier: Hashable, callback: Callback) -> None:
        """Remove the first registration of `callback` for `identifier`; no-op if absent."""
        self._check_identifier(identifier)
        self._check_callback(callback)
        self._apply(lambda: self._unsubscribe_now(identifier, callback), "unsubscribe from %r", identifier)

    def _unsubscribe_now(self, identifier: Hashable, callback: Callback) -> None:
        callbacks = self._subs.get(identifier)
        if not callbacks or callback not in callbacks:
            return
        callbacks.remove(callback)
        if not callbacks:
            del self._subs[identifier]
        logger.debug("Unsubscribed %s from %r", getattr(callback, "__qualname__", callback), identifier)

    def clear(self, identifier: Hashable = _UNSET) -> None:
        """clear() drops every subscription and the trigger history.
        clear(identifier) drops that identifier's subscriptions only.

        The history goes at once; only the subscriptions wait for a running trigger.
        """
        if identifier is _UNSET:
            self._triggered.clear()
            self._apply(self._clear_all, "clear of all identifiers")
            return
        self._check_identifier(identifier)
        self._apply(lambda: self._clear_one(identifier), "clear of %r", identifier)

    def _clear_all(self) -> None:
        self._subs.clear()
        logger.debug("Cleared all identifiers")

    def _clear_one(self, identifier: Hashable) -> None:
        if self._subs.pop(identifier, None) is not None:
            logger.debug("Cleared %r", identifier)

    # ── queries ────────────────────────────────────────────────

    def is_subscribed(self, identifier: Hashable, callback: Callback = _UNSET) -> bool:
        self._check_identifier(identifier)
        if callback is _UNSET:
            return identifier in self._subs
        self._check_callback(callback)
        return callback in self._subs.get(identifier, ())

    def subscriber_count(self, identifier: Hashable) -> int:
        self._check_identifier(identifier)
        return len(self._subs.get(identifier, ()))

    def last_trigger(self, identifier: Hashable) -> Optional[TriggeredSignal]:
        self._check_identifier(identifier)
        return self._triggered.get(identifier)

    # ── dispatch ───────────────────────────────────────────────

    def trigger(self, identifier: Hashable, payload: Optional[Any] = None) -> None:
        """Invoke every callback subscribed to `identifier` with `payload`, in subscription order.

        Callback exceptions propagate and abort the rest of this dispatch; no
        trigger record is written in that case.
        """
        self._check_identifier(identifier)

        snapshot = tuple(self._subs.get(identifier, ()))
        dispatch_id = new_id()
        if snapshot:
            logger.debug("Dispatching %r to %d callback(s) (dispatch_id: %s)", identifier, len(snapshot), dispatch_id)

        completed = False
        self._depth += 1
        try:
            for callback in snapshot:
                callback(payload)
            completed = True
        finally:
            self._depth -= 1
            if not self._depth:
                self._drain(completed)

        if self.config.record_history:
            self._triggered[identifier] = TriggeredSignal(
                identifier=identifier,
                payload=payload,
                triggered_at_utc=utc_now_iso(),
                dispatch_id=dispatch_id,
            )

    def _drain(self, completed: bool) -> None:
        if not self._deferred:
            return
        if not completed and not self.config.replay_deferred_on_error:
            logger.warning("Discarding %d deferred mutation(s) after a failed dispatch", len(self._deferred))
            self._deferred.clear()
            return
        while self._deferred:
            action = self._deferred.popleft()
            action()
