"""
Bus de eventos tipado de la integración, uno por petición.
"""
import enum
import logging
from collections import defaultdict

logger = logging.getLogger(__name__)


class EventKind(enum.Enum):
    CART_MUTATED = 'cart_mutated'
    CART_EMPTIED = 'cart_emptied'
    PAYMENT_INSERTED = 'payment_inserted'
    PAYMENT_STATUS_CHANGED = 'payment_status_changed'


class EventBus:

    def __init__(self):
        self._handlers = defaultdict(list)
        self._fired = set()

    def subscribe(self, kind, handler):
        self._handlers[kind].append(handler)

    def publish(self, kind, **payload):
        if not isinstance(kind, EventKind):
            raise TypeError(f"Unknown event kind: {kind!r}")
        self._fired.add(kind)
        for handler in self._handlers[kind]:
            handler(**payload)

    def has_fired(self, kind):
        """True si el evento ya se publicó en esta petición."""
        return kind in self._fired
