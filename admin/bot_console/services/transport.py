import logging
import threading

import socketio
from socketio import exceptions as sio_exceptions

log = logging.getLogger(__name__)


def _default_client():
    return socketio.Client(reconnection=True)


class Transport:
    """The one Socket.IO connection this process keeps to the backend.

    Many local handlers can listen to the same event name; the socket client
    only ever sees one dispatcher per name, which fans out to them in
    registration order.

    The access token is read from *token_provider* when :meth:`connect`
    opens a connection. Automatic reconnects made by the socket client reuse
    that same token.
    """

    def __init__(self, url, token_provider=None, client_factory=None):
        self.url = url
        self._token_provider = token_provider or (lambda: '')
        self._client_factory = client_factory or _default_client
        self._client = None
        self._listeners: dict = {}
        self._bound: set = set()
        self._connect_hooks: list = []
        self._lock = threading.Lock()

    @property
    def connected(self):
        return self._client is not None and bool(self._client.connected)

    def connect(self):
        """Return the live socket client, opening a connection if needed."""
        with self._lock:
            if self.connected:
                return self._client
            stale = self._client
            client = self._client_factory()
            client.on('connect', self._on_connect)
            client.on('disconnect', self._on_disconnect)
            client.on('connect_error', self._on_connect_error)
            self._client = client
            self._bound = set()
            for event in self._listeners:
                self._bind(event)
            token = self._token_provider()
        if stale is not None and stale is not client:
            # Stop the old client's own reconnect loop.
            try:
                stale.disconnect()
            except Exception as exc:
                log.debug('Closing stale client failed: %s', exc)
        try:
            client.connect(self.url, auth={'token': token}, transports=['websocket'])
        except sio_exceptions.ConnectionError as exc:
            log.warning('Transport could not connect to %s: %s', self.url, exc)
        return client

    def disconnect(self):
        """Close the connection and forget every registered listener."""
        with self._lock:
            client, self._client = self._client, None
            self._listeners.clear()
            self._bound = set()
        if client is None:
            return
        try:
            client.disconnect()
        except Exception as exc:
            log.warning('Transport disconnect from %s failed: %s', self.url, exc)

    def on(self, event, handler):
        with self._lock:
            self._listeners.setdefault(event, []).append(handler)
            if self._client is not None:
                self._bind(event)

    def off(self, event, handler):
        with self._lock:
            handlers = self._listeners.get(event, [])
            if handler in handlers:
                handlers.remove(handler)
            if not handlers:
                self._listeners.pop(event, None)

    def emit(self, event, payload=None):
        """Send a named event. Failures are logged, never raised."""
        client = self._client
        if client is None:
            log.debug('Dropping %s: transport not connected', event)
            return False
        try:
            client.emit(event, payload if payload is not None else {})
            return True
        except Exception as exc:
            log.warning('Emit %s failed: %s', event, exc)
            return False

    def dispatch(self, event, *args):
        """Deliver an inbound event to every local handler for *event*."""
        with self._lock:
            handlers = list(self._listeners.get(event, []))
        for handler in handlers:
            try:
                handler(*args)
            except Exception:
                log.exception('Handler for %s raised', event)

    def _bind(self, event):
        # Caller holds self._lock.
        if event in self._bound:
            return

        def _dispatcher(*args):
            self.dispatch(event, *args)

        self._client.on(event, _dispatcher)
        self._bound.add(event)

    def add_connect_hook(self, hook):
        """Run *hook* after every successful connect, reconnects included.

        Hooks outlive :meth:`disconnect`; they belong to the owner of the
        transport, not to a connection.
        """
        self._connect_hooks.append(hook)

    def _on_connect(self):
        log.info('Transport connected to %s', self.url)
        for hook in list(self._connect_hooks):
            try:
                hook()
            except Exception:
                log.exception('Connect hook raised')

    def _on_disconnect(self, *args):
        reason = args[0] if args else ''
        log.info('Transport disconnected from %s %s', self.url, reason)

    def _on_connect_error(self, data=None):
        log.warning('Transport connection error on %s: %s', self.url, data)
