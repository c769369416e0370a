import logging

from ..extensions import SYSTEM_PROMPT
from ..models import BotLifecycleState

log = logging.getLogger(__name__)

# status -> (reset buffer first, annotation appended afterwards or None)
# RESTARTING and ERROR pass through without touching the buffer.
TRANSITIONS = {
    BotLifecycleState.STARTING: (True,  f'{SYSTEM_PROMPT} Server marked as starting...'),
    BotLifecycleState.RUNNING:  (False, f'{SYSTEM_PROMPT} Server marked as running...'),
    BotLifecycleState.STOPPING: (False, f'{SYSTEM_PROMPT} Server marked as offline...'),
    BotLifecycleState.STOPPED:  (True,  None),
}


class LifecycleCorrelator:
    """Applies a bot's status transitions to its console buffer.

    Runs independently of the pause flag: a reset or annotation caused by a
    status change always lands.
    """

    def __init__(self, bot_id, buffer, on_change=None):
        self.bot_id = str(bot_id)
        self.buffer = buffer
        self.status = None
        self._on_change = on_change

    def handle(self, event):
        """Process one StatusEvent. Events for other bots are ignored."""
        if event.bot_id != self.bot_id:
            return False
        self.status = event.status
        reset, message = TRANSITIONS.get(event.status, (False, None))
        if reset and message is not None:
            self.buffer.reset_to(message, event.timestamp, level='system')
        elif reset:
            self.buffer.reset()
        elif message is not None:
            self.buffer.append(message, event.timestamp, level='system', force=True)
        log.debug('Bot %s is now %s', self.bot_id, event.status.value)
        if (reset or message is not None) and self._on_change:
            self._on_change()
        return True
