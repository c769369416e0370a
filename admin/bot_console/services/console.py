import logging
import threading
import uuid
from datetime import datetime, timezone

from ..extensions import (
    AUTOSCROLL_THRESHOLD, DAEMON_PREFIX, EMPTY_PLACEHOLDER,
    MAX_CONSOLE_LINES,
)
from .lifecycle import LifecycleCorrelator
from .log_buffer import LogBuffer

log = logging.getLogger(__name__)


def export_filename(bot_id, now=None):
    """Download name for a transcript, dated in UTC."""
    now = now or datetime.now(timezone.utc)
    return f'bot-{bot_id}-logs-{now.date().isoformat()}.txt'


class ConsoleController:
    """User-facing controls of one console session."""

    def __init__(self, session, autoscroll_threshold=AUTOSCROLL_THRESHOLD,
                 on_scroll_to_bottom=None):
        self.session = session
        self.autoscroll_threshold = autoscroll_threshold
        self._on_scroll_to_bottom = on_scroll_to_bottom

    def pause(self):
        self.session.buffer.paused = True

    def resume(self):
        # Lines dropped while paused are gone for good.
        self.session.buffer.paused = False

    def set_autoscroll(self, flag):
        self.session.autoscroll = bool(flag)

    def on_scroll(self, scroll_height, scroll_top, client_height):
        """Re-evaluate autoscroll from the viewport geometry of a scroll event."""
        distance = scroll_height - scroll_top - client_height
        self.set_autoscroll(distance < self.autoscroll_threshold)
        return self.session.autoscroll

    def scroll_to_bottom(self):
        self.set_autoscroll(True)
        self._fire_scroll()

    def notify_mutation(self):
        """Called after every buffer change; follows the tail when autoscrolling."""
        if self.session.autoscroll:
            self._fire_scroll()

    def clear(self):
        self.session.buffer.clear()
        self.notify_mutation()

    def export_text(self, now=None):
        """Return (filename, text) for the current transcript. Does not touch the buffer."""
        entries = self.session.buffer.entries()
        text = '\n'.join(f'[{e.timestamp}] {e.message}' for e in entries)
        return export_filename(self.session.bot_id, now), text

    @property
    def line_count(self):
        return len(self.session.buffer)

    @property
    def is_empty(self):
        return self.line_count == 0

    @property
    def placeholder(self):
        return list(EMPTY_PLACEHOLDER) if self.is_empty else None

    def _fire_scroll(self):
        if self._on_scroll_to_bottom is None:
            return
        try:
            self._on_scroll_to_bottom(self.session)
        except Exception:
            log.exception('Scroll callback for bot %s raised', self.session.bot_id)


class ConsoleSession:
    """Buffer, flags and subscriptions of one actively viewed bot.

    Every viewer of the bot shares this object, so the pause flag and the
    transcript are the same for all of them.
    """

    def __init__(self, bot_id, maxlen=MAX_CONSOLE_LINES, daemon_prefix=DAEMON_PREFIX,
                 autoscroll_threshold=AUTOSCROLL_THRESHOLD, on_scroll_to_bottom=None):
        self.bot_id = str(bot_id)
        self.buffer = LogBuffer(maxlen=maxlen, daemon_prefix=daemon_prefix)
        self.autoscroll = True
        self.viewers: set = set()
        self.controller = ConsoleController(self, autoscroll_threshold, on_scroll_to_bottom)
        self.correlator = LifecycleCorrelator(self.bot_id, self.buffer,
                                              on_change=self.controller.notify_mutation)
        self.closed = False
        self._subscriptions: list = []
        self._lock = threading.Lock()

    @property
    def paused(self):
        return self.buffer.paused

    @property
    def status(self):
        return self.correlator.status

    def open(self, registry):
        """Subscribe to status and logs. A session closed before this runs stays closed."""
        with self._lock:
            if self.closed:
                return False
            self._subscriptions = [
                registry.subscribe_status(self.on_status),
                registry.subscribe_logs(self.bot_id, self.on_log),
            ]
        return True

    def close(self):
        with self._lock:
            self.closed = True
            subs, self._subscriptions = self._subscriptions, []
        for sub in subs:
            sub.unsubscribe()

    def on_log(self, data):
        message = data.get('log') if isinstance(data, dict) else None
        if not isinstance(message, str):
            log.debug('Ignoring log payload without text for bot %s', self.bot_id)
            return
        entry = self.buffer.append(message, str(data.get('timestamp') or ''))
        if entry is not None:
            self.controller.notify_mutation()

    def on_status(self, event):
        self.correlator.handle(event)


class SessionManager:
    """Keeps at most one ConsoleSession per bot and tracks who is viewing it."""

    def __init__(self, registry, maxlen=MAX_CONSOLE_LINES, daemon_prefix=DAEMON_PREFIX,
                 autoscroll_threshold=AUTOSCROLL_THRESHOLD, on_scroll_to_bottom=None):
        self.registry = registry
        self.maxlen = maxlen
        self.daemon_prefix = daemon_prefix
        self.autoscroll_threshold = autoscroll_threshold
        self.on_scroll_to_bottom = on_scroll_to_bottom
        self._sessions: dict = {}
        self._lock = threading.Lock()

    def attach(self, bot_id):
        """Register a viewer of *bot_id* and return its viewer id."""
        bot_id = str(bot_id)
        viewer_id = uuid.uuid4().hex
        with self._lock:
            session = self._sessions.get(bot_id)
            created = session is None
            if created:
                session = ConsoleSession(
                    bot_id, self.maxlen, self.daemon_prefix,
                    self.autoscroll_threshold, self.on_scroll_to_bottom,
                )
                self._sessions[bot_id] = session
            session.viewers.add(viewer_id)
        if created and session.open(self.registry):
            log.info('Opened console session for bot %s', bot_id)
        return viewer_id

    def detach(self, bot_id, viewer_id):
        """Drop a viewer; the last one out closes the session. Returns False for unknown ids."""
        bot_id = str(bot_id)
        with self._lock:
            session = self._sessions.get(bot_id)
            if session is None or viewer_id not in session.viewers:
                return False
            session.viewers.discard(viewer_id)
            last = not session.viewers
            if last:
                del self._sessions[bot_id]
        if last:
            session.close()
            log.info('Closed console session for bot %s', bot_id)
        return True

    def get(self, bot_id):
        with self._lock:
            return self._sessions.get(str(bot_id))

    def bot_ids(self):
        with self._lock:
            return list(self._sessions)

    def close_all(self):
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.viewers.clear()
            session.close()
