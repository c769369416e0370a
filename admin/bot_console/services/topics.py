"""Topics carried over the shared transport.

The set is closed: a topic is either the per-bot log stream or the single
app-wide status stream. Each topic knows the wire events that open and
close it and the inbound event it listens to.
"""
from dataclasses import dataclass

LOG_EVENT = 'bot:log'
STATUS_EVENT = 'bot:status'


@dataclass(frozen=True)
class LogsTopic:
    bot_id: str

    inbound_event = LOG_EVENT
    subscribe_event = 'subscribe:logs'
    unsubscribe_event = 'unsubscribe:logs'

    @property
    def payload(self):
        return {'botId': self.bot_id}


@dataclass(frozen=True)
class StatusTopic:
    inbound_event = STATUS_EVENT
    subscribe_event = 'subscribe:status'
    unsubscribe_event = 'unsubscribe:status'

    @property
    def payload(self):
        return {}


STATUS_TOPIC = StatusTopic()
