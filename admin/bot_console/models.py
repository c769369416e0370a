import enum
import random
import time
from dataclasses import dataclass
from typing import Optional

from .extensions import ANSI_ESCAPE


LEVELS = ('info', 'warn', 'error', 'debug', 'system', 'daemon')


class BotLifecycleState(str, enum.Enum):
    """Lifecycle states reported by the process supervisor.

    The console only follows these; it never drives them.
    """
    STOPPED = 'STOPPED'
    STARTING = 'STARTING'
    RUNNING = 'RUNNING'
    STOPPING = 'STOPPING'
    RESTARTING = 'RESTARTING'
    ERROR = 'ERROR'

    @property
    def label(self):
        return self.value.capitalize()

    @property
    def is_transitional(self):
        return self in (BotLifecycleState.STARTING,
                        BotLifecycleState.STOPPING,
                        BotLifecycleState.RESTARTING)


def new_entry_id():
    """Client-side id: receipt time in ms plus a random salt."""
    return f'{int(time.time() * 1000)}-{random.random():.12f}'


@dataclass(frozen=True)
class LogEntry:
    id: str
    message: str
    timestamp: str
    level: str

    @property
    def display(self):
        """The message without terminal colour codes."""
        return ANSI_ESCAPE.sub('', self.message)

    def to_dict(self):
        return {
            'id': self.id,
            'message': self.message,
            'display': self.display,
            'timestamp': self.timestamp,
            'level': self.level,
        }


@dataclass(frozen=True)
class StatusEvent:
    bot_id: str
    status: BotLifecycleState
    timestamp: str
    container_ref: Optional[str] = None

    @classmethod
    def from_payload(cls, data):
        """Parse a ``bot:status`` payload; return None when it is malformed."""
        if not isinstance(data, dict):
            return None
        bot_id = data.get('botId')
        if not bot_id:
            return None
        try:
            status = BotLifecycleState(data.get('status'))
        except ValueError:
            return None
        return cls(
            bot_id=str(bot_id),
            status=status,
            timestamp=str(data.get('timestamp') or ''),
            container_ref=data.get('containerId'),
        )
