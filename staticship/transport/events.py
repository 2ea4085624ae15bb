"""
Fail-safe event emitter for request lifecycle events.

Events emitted by the transport:
    request(url, request)    before a request is sent
    response(response, url)  once, after a 2xx response
    error(error, url)        when a request fails (typed ShipError)

Listeners are called synchronously, in registration order. Each call is
isolated: a listener that raises is logged and skipped, delivery continues
with the next listener and the request itself is unaffected. A failing
listener stays registered until removed with off().

Example usage:
    >>> emitter = EventEmitter()
    >>> emitter.on("request", lambda url, request: print("->", url))
    >>> emitter.emit("request", "https://api.shipstatic.com/ping", None)
    -> https://api.shipstatic.com/ping
"""

from typing import Any, Callable, Dict, List

from staticship.utils.logging import get_logger

logger = get_logger(__name__)

EVENT_NAMES = ("request", "response", "error")

Listener = Callable[..., Any]


class EventEmitter:
    """Minimal synchronous emitter with per-listener error isolation."""

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = {}

    def on(self, event: str, listener: Listener) -> None:
        """
        Register a listener.

        Raises:
            ValueError: If the event name is unknown
        """
        if event not in EVENT_NAMES:
            raise ValueError(f"Unknown event '{event}'. Expected one of: {', '.join(EVENT_NAMES)}")
        self._listeners.setdefault(event, []).append(listener)

    def off(self, event: str, listener: Listener) -> None:
        """Remove a listener; unknown listeners are ignored."""
        listeners = self._listeners.get(event)
        if not listeners:
            return
        try:
            listeners.remove(listener)
        except ValueError:
            return
        if not listeners:
            del self._listeners[event]

    def emit(self, event: str, *args: Any) -> None:
        # Snapshot so listeners may unregister themselves while being called
        for listener in list(self._listeners.get(event, ())):
            try:
                listener(*args)
            except Exception as e:
                logger.warning(
                    f"Listener for '{event}' event raised {type(e).__name__}: {e}",
                    extra={"event_name": event},
                    exc_info=True,
                )

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))

    def clear(self) -> None:
        self._listeners.clear()

    def transfer_to(self, target: "EventEmitter") -> None:
        """
        Move every listener onto another emitter.

        Used when the client replaces its transport (new API URL or
        credentials) so registered listeners keep receiving events.
        """
        for event, listeners in self._listeners.items():
            for listener in listeners:
                target.on(event, listener)
        self.clear()
