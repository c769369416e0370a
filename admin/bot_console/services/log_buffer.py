import logging
import threading
from collections import deque

from ..extensions import DAEMON_PREFIX, MAX_CONSOLE_LINES
from ..models import LEVELS, LogEntry, new_entry_id

log = logging.getLogger(__name__)


def classify(message, daemon_prefix=DAEMON_PREFIX):
    """Return the display level of a raw log line.

    'system' is never returned: only lifecycle annotations carry it.
    """
    if daemon_prefix and message.startswith(daemon_prefix):
        return 'daemon'
    lower = message.lower()
    # 'err' also covers 'error'
    if 'err' in lower:
        return 'error'
    if 'warn' in lower:
        return 'warn'
    if 'debug' in lower:
        return 'debug'
    return 'info'


class LogBuffer:
    """Bounded, ordered transcript of one bot's console.

    deque(maxlen=...) evicts the oldest entry on overflow. ``seq`` counts every
    entry ever appended, so a reader holding a cursor (since=N) keeps its
    place across eviction and resets.
    """

    def __init__(self, maxlen=MAX_CONSOLE_LINES, daemon_prefix=DAEMON_PREFIX):
        self.maxlen = maxlen
        self.daemon_prefix = daemon_prefix
        self.paused = False
        self.seq = 0
        self._entries: deque = deque(maxlen=maxlen)
        self._lock = threading.Lock()

    def __len__(self):
        with self._lock:
            return len(self._entries)

    def append(self, message, timestamp, level=None, force=False):
        """Append one entry; return it, or None when the buffer is paused.

        *force* is for lifecycle annotations, which are written even while
        paused.
        """
        if self.paused and not force:
            log.debug('Paused, dropping line: %s', message)
            return None
        entry = self._make_entry(message, timestamp, level)
        with self._lock:
            self._entries.append(entry)
            self.seq += 1
        return entry

    def reset(self):
        with self._lock:
            self._entries.clear()

    def reset_to(self, message, timestamp, level='system'):
        """Empty the buffer and seed it with one entry in a single step."""
        entry = self._make_entry(message, timestamp, level)
        with self._lock:
            self._entries.clear()
            self._entries.append(entry)
            self.seq += 1
        return entry

    def clear(self):
        self.reset()

    def entries(self):
        with self._lock:
            return list(self._entries)

    def since(self, cursor):
        """Return (entries appended after *cursor*, current seq).

        A cursor older than what is still buffered is clamped to the oldest
        surviving entry; one beyond seq yields nothing.
        """
        with self._lock:
            buf = list(self._entries)
            seq = self.seq
        buf_start = seq - len(buf)
        cursor = max(buf_start, min(cursor, seq))
        return buf[cursor - buf_start:], seq

    def _make_entry(self, message, timestamp, level):
        if level is None:
            level = classify(message, self.daemon_prefix)
        elif level not in LEVELS:
            raise ValueError(f'Unknown log level: {level}')
        return LogEntry(id=new_entry_id(), message=message,
                        timestamp=timestamp, level=level)
