"""
Application-scoped event emitter.
One instance lives on app.state and is injected into the services that
publish or listen (credit refresh, job progress, user notifications).
"""
import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

Handler = Callable[[Dict[str, Any]], None]


# Event name constants for consistency
class Events:
    JOB_PROGRESS = "job_progress"
    JOB_FINISHED = "job_finished"
    CREDITS_CHANGED = "credits_changed"
    NOTIFICATION = "notification"


class EventEmitter:
    """Minimal synchronous observable."""

    def __init__(self):
        self._handlers: Dict[str, List[Handler]] = defaultdict(list)

    def on(self, event: str, handler: Handler) -> Callable[[], None]:
        """Subscribe a handler. Returns a callable that unsubscribes it."""
        self._handlers[event].append(handler)
        return lambda: self.off(event, handler)

    def off(self, event: str, handler: Handler) -> None:
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: str, payload: Dict[str, Any] = None) -> None:
        """Call every handler for the event. A failing handler never blocks the rest."""
        for handler in list(self._handlers.get(event, [])):
            try:
                handler(payload or {})
            except Exception as e:
                logger.error(f"Handler for '{event}' failed: {e}")

    def notify(self, level: str, message: str, **extra: Any) -> None:
        """Publish a non-blocking user notification."""
        self.emit(Events.NOTIFICATION, {"level": level, "message": message, **extra})
