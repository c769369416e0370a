import logging
import threading

from ..models import StatusEvent
from .topics import STATUS_TOPIC, LogsTopic

log = logging.getLogger(__name__)


class Subscription:
    """Cancellable handle returned by the registry.

    Releasing it more than once is a no-op, so UI teardown code can call it
    unconditionally.
    """

    def __init__(self, registry, topic, callback):
        self._registry = registry
        self.topic = topic
        self.callback = callback
        self.active = True

    def unsubscribe(self):
        if not self.active:
            return
        self.active = False
        self._registry._release(self)

    __call__ = unsubscribe


class SubscriptionRegistry:
    """Reference-counted topic subscriptions multiplexed onto one transport.

    The first subscriber of a topic makes the registry emit the topic's
    subscribe event and install one transport listener for it; the last
    release emits the unsubscribe event and removes that listener.
    """

    def __init__(self, transport):
        self.transport = transport
        self._subs: dict = {}
        self._listeners: dict = {}
        self._lock = threading.Lock()
        transport.add_connect_hook(self._resubscribe)

    def subscribe_logs(self, bot_id, on_log):
        """*on_log* receives the raw ``bot:log`` payload of this bot."""
        return self._acquire(LogsTopic(str(bot_id)), on_log)

    def subscribe_status(self, on_status):
        """*on_status* receives a parsed :class:`StatusEvent` for every bot."""
        return self._acquire(STATUS_TOPIC, on_status)

    def refcount(self, topic):
        with self._lock:
            return len(self._subs.get(topic, []))

    def active_topics(self):
        with self._lock:
            return list(self._subs)

    def _acquire(self, topic, callback):
        sub = Subscription(self, topic, callback)
        with self._lock:
            subs = self._subs.setdefault(topic, [])
            subs.append(sub)
            first = len(subs) == 1
            if first:
                listener = self._make_listener(topic)
                self._listeners[topic] = listener
        if first:
            self.transport.on(topic.inbound_event, listener)
            if self.transport.connected:
                self.transport.emit(topic.subscribe_event, topic.payload)
            else:
                # The connect hook sends this topic along with every other active one.
                self.transport.connect()
            log.info('Subscribed to %s', topic)
        return sub

    def _release(self, sub):
        topic = sub.topic
        with self._lock:
            subs = self._subs.get(topic, [])
            if sub in subs:
                subs.remove(sub)
            last = not subs
            listener = None
            if last:
                self._subs.pop(topic, None)
                listener = self._listeners.pop(topic, None)
        if last and listener is not None:
            self.transport.emit(topic.unsubscribe_event, topic.payload)
            self.transport.off(topic.inbound_event, listener)
            log.info('Unsubscribed from %s', topic)

    def _resubscribe(self):
        """Re-send the subscribe event of every active topic on a fresh connection."""
        with self._lock:
            topics = list(self._subs)
        for topic in topics:
            self.transport.emit(topic.subscribe_event, topic.payload)
        if topics:
            log.info('Resubscribed %d topic(s)', len(topics))

    def _make_listener(self, topic):
        if isinstance(topic, LogsTopic):
            def _on_log(data=None):
                if not isinstance(data, dict) or not data.get('botId'):
                    log.debug('Ignoring malformed log payload: %r', data)
                    return
                if str(data['botId']) != topic.bot_id:
                    return
                self._fan_out(topic, data)
            return _on_log

        def _on_status(data=None):
            event = StatusEvent.from_payload(data)
            if event is None:
                log.debug('Ignoring malformed status payload: %r', data)
                return
            self._fan_out(topic, event)
        return _on_status

    def _fan_out(self, topic, item):
        with self._lock:
            subs = list(self._subs.get(topic, []))
        for sub in subs:
            try:
                sub.callback(item)
            except Exception:
                log.exception('Subscriber of %s raised', topic)
