"""
Typed cross-component messages.

Every message goes through one EventDispatcher built on a Django Signal.
Handlers register per message type; ``publish`` delivers synchronously and
returns the number of handlers that received the message. The Shell is the
listener that applies navigation requests and remembers which create form
was asked for.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from django.dispatch import Signal

logger = logging.getLogger(__name__)

MODAL_ENTITIES = frozenset([
    'action', 'budget', 'category', 'contact', 'element', 'material',
    'material-category', 'movement', 'organization', 'project', 'site-log',
    'task', 'unit', 'user',
])


@dataclass(frozen=True)
class NavigateToSection:
    section: str
    view: Optional[str] = None


@dataclass(frozen=True)
class OpenCreateModal:
    entity: str

    def __post_init__(self):
        if self.entity not in MODAL_ENTITIES:
            raise ValueError(f"No create form for '{self.entity}'")


MESSAGE_TYPES = {
    'navigate-to-section': NavigateToSection,
    'open-create-modal': OpenCreateModal,
}


def parse_message(payload):
    """Build a message from ``{"type": ..., "detail": {...}}``."""
    message_type = MESSAGE_TYPES.get(payload.get('type'))
    if message_type is None:
        raise ValueError(f"Unknown message type '{payload.get('type')}'")
    detail = payload.get('detail') or {}
    if not isinstance(detail, dict):
        raise ValueError("Message detail must be an object")
    try:
        return message_type(**detail)
    except TypeError as e:
        raise ValueError(f"Invalid detail for '{payload['type']}': {e}") from e


class EventDispatcher:
    def __init__(self):
        self.signal = Signal()

    def subscribe(self, message_type, handler):
        """Deliver ``message_type`` messages to ``handler``; returns an unsubscribe function."""
        if message_type not in MESSAGE_TYPES.values():
            raise TypeError(f"{message_type!r} is not a message type")

        def receiver(sender, message, **kwargs):
            return handler(message)

        self.signal.connect(receiver, sender=message_type, weak=False)

        def unsubscribe():
            self.signal.disconnect(receiver, sender=message_type)
        return unsubscribe

    def publish(self, message):
        if type(message) not in MESSAGE_TYPES.values():
            raise TypeError(f"{type(message).__name__} is not a message type")
        responses = self.signal.send(sender=type(message), message=message)
        if not responses:
            logger.debug(f"No listener for {message!r}")
        return len(responses)


class Shell:
    """Applies navigation messages and tracks the requested create form."""

    def __init__(self, navigation_store, dispatcher):
        self.navigation = navigation_store
        self.pending_modal = None
        self._unsubscribers = [
            dispatcher.subscribe(NavigateToSection, self.on_navigate),
            dispatcher.subscribe(OpenCreateModal, self.on_open_create_modal),
        ]

    def on_navigate(self, message):
        return self.navigation.navigate(message.section, message.view)

    def on_open_create_modal(self, message):
        self.pending_modal = message.entity
        return message.entity

    def close(self):
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
