"""
Shared pytest fixtures.

Key design decisions:
- TestConfig class with every value pinned (avoids class-level os.environ.get timing issues).
- TESTING env var stops create_app() from opening a connection on its own.
- The Socket.IO client is replaced by FakeSocketClient, so no backend is needed.
  Tests push inbound events with fake.receive(event, payload).
"""
import os

import pytest


ADMIN_TOKEN = 'test-secret-token'


class TestConfig:
    SECRET_KEY = 'pytest-secret'
    SESSION_COOKIE_HTTPONLY = True
    PERMANENT_SESSION_LIFETIME = 3600

    ADMIN_TOKEN = ADMIN_TOKEN
    WS_URL = 'http://backend.test:3001'
    ACCESS_TOKEN = 'access-token-1'
    WS_AUTOCONNECT = False

    MAX_CONSOLE_LINES = 1000
    AUTOSCROLL_THRESHOLD = 50
    DAEMON_PREFIX = '[Dead Studios Daemon]:'


class FakeSocketClient:
    """Stand-in for socketio.Client recording what the transport does with it."""

    def __init__(self, fail_connect=False):
        self.connected = False
        self.handlers = {}
        self.emitted = []
        self.connect_calls = []
        self.disconnect_calls = 0
        self.fail_connect = fail_connect

    def on(self, event, handler=None):
        self.handlers[event] = handler

    def connect(self, url, auth=None, transports=None):
        self.connect_calls.append({'url': url, 'auth': auth, 'transports': transports})
        if self.fail_connect:
            from socketio.exceptions import ConnectionError as SioConnectionError
            raise SioConnectionError('backend unreachable')
        self.connected = True
        if 'connect' in self.handlers:
            self.handlers['connect']()

    def disconnect(self):
        self.disconnect_calls += 1
        self.connected = False

    def emit(self, event, data=None):
        self.emitted.append((event, data))

    def receive(self, event, *args):
        """Simulate the server pushing *event*."""
        handler = self.handlers.get(event)
        if handler is not None:
            handler(*args)

    def emitted_names(self):
        return [name for name, _ in self.emitted]


@pytest.fixture()
def fake_socket():
    return FakeSocketClient()


@pytest.fixture()
def transport(fake_socket):
    from bot_console.services.transport import Transport
    return Transport('http://backend.test:3001',
                     token_provider=lambda: 'access-token-1',
                     client_factory=lambda: fake_socket)


@pytest.fixture()
def registry(transport):
    from bot_console.services.subscriptions import SubscriptionRegistry
    return SubscriptionRegistry(transport)


@pytest.fixture()
def sessions(registry):
    from bot_console.services.console import SessionManager
    return SessionManager(registry)


@pytest.fixture()
def app(fake_socket):
    """
    Flask test application wired to the fake socket client.

    Function-scoped: every test starts with no open console sessions.
    """
    os.environ['TESTING'] = '1'

    from bot_console import create_app
    flask_app = create_app(config_class=TestConfig, client_factory=lambda: fake_socket)
    flask_app.config['TESTING'] = True
    return flask_app


@pytest.fixture()
def client(app):
    """Flask test client (unauthenticated)."""
    return app.test_client()


@pytest.fixture()
def auth_client(app):
    """Flask test client pre-authenticated."""
    c = app.test_client()
    with c.session_transaction() as sess:
        sess['logged_in'] = True
    return c


def log_payload(bot_id, line, ts='2024-01-15T10:30:00Z'):
    return {'botId': bot_id, 'log': line, 'timestamp': ts}


def status_payload(bot_id, status, ts='2024-01-15T10:30:00Z', container_id=None):
    data = {'botId': bot_id, 'status': status, 'timestamp': ts}
    if container_id:
        data['containerId'] = container_id
    return data
