# EventBus - Publish/subscribe feed for controller transport events
#
# The controller transport publishes connection, status, workflow and
# sender events here; sessions and status trackers subscribe to them.
# Subscribers run synchronously, in subscription order, on the emitting
# thread, so events are handled strictly in arrival order.

import threading
from collections import defaultdict


class EventBus:
    """Simple publish/subscribe event bus.

    Thread-safe subscription management. For UI updates from
    background threads, combine with a toolkit-specific dispatcher
    (a Qt signal, QTimer, etc.).
    """

    def __init__(self):
        self._subscribers = defaultdict(list)
        self._lock = threading.Lock()

    def on(self, event_name, callback):
        """Subscribe to an event.

        Args:
            event_name: String identifier, e.g. "controller:state".
            callback: Callable receiving the emit() arguments.
        """
        with self._lock:
            if callback not in self._subscribers[event_name]:
                self._subscribers[event_name].append(callback)

    def off(self, event_name, callback):
        """Unsubscribe from an event. Unknown callbacks are ignored."""
        with self._lock:
            callbacks = self._subscribers.get(event_name, [])
            if callback in callbacks:
                callbacks.remove(callback)

    def on_many(self, handlers):
        """Subscribe a {event_name: callback} mapping."""
        for event_name, callback in handlers.items():
            self.on(event_name, callback)

    def off_many(self, handlers):
        for event_name, callback in handlers.items():
            self.off(event_name, callback)

    def emit(self, event_name, *args, **kwargs):
        """Emit an event, calling all subscribers.

        Exceptions raised by a subscriber propagate to the emitter.
        """
        with self._lock:
            callbacks = list(self._subscribers.get(event_name, []))
        for callback in callbacks:
            callback(*args, **kwargs)

    def subscribers(self, event_name):
        with self._lock:
            return list(self._subscribers.get(event_name, []))

    def clear(self, event_name=None):
        """Remove all subscribers, optionally for a specific event."""
        with self._lock:
            if event_name is None:
                self._subscribers.clear()
            else:
                self._subscribers.pop(event_name, None)
