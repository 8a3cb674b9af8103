"""
Event System Module

Publish/subscribe dispatcher for account and ledger domain events. Events
are published after a mutation has been committed, so handlers always see
the post-operation state and can never undo it by failing.
"""

from enum import Enum
from typing import Callable, Dict, List, Any, Optional
from dataclasses import dataclass, field
from datetime import datetime, timezone
import uuid
import logging
from threading import RLock


class DomainEvent(Enum):
    """Domain events that can occur in the account registry"""
    
    # Account events
    ACCOUNT_CREATED = "account.created"
    ACCOUNT_DELETED = "account.deleted"
    
    # Ledger events
    DEPOSIT_APPLIED = "ledger.deposit_applied"
    WITHDRAWAL_APPLIED = "ledger.withdrawal_applied"
    TRANSACTION_UNDONE = "ledger.transaction_undone"


@dataclass
class EventPayload:
    """Payload for domain events"""
    event_type: DomainEvent
    entity_id: int
    data: Dict[str, Any]
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            'event_type': self.event_type.value,
            'entity_id': self.entity_id,
            'data': self.data,
            'timestamp': self.timestamp.isoformat(),
            'event_id': self.event_id
        }


EventHandler = Callable[[EventPayload], None]


class EventDispatcher:
    """Central event dispatcher, publish/subscribe pattern"""
    
    def __init__(self):
        self._handlers: Dict[DomainEvent, List[EventHandler]] = {}
        self._global_handlers: List[EventHandler] = []
        self._lock = RLock()
        self.logger = logging.getLogger("bank_core.events")
    
    @staticmethod
    def _handler_name(handler: EventHandler) -> str:
        return getattr(handler, "__name__", repr(handler))
    
    def subscribe(self, event_type: DomainEvent, handler: EventHandler) -> None:
        """Subscribe to a specific event type"""
        with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)
            self.logger.debug(f"Subscribed handler {self._handler_name(handler)} to {event_type.value}")
    
    def subscribe_all(self, handler: EventHandler) -> None:
        """Subscribe to ALL events"""
        with self._lock:
            self._global_handlers.append(handler)
            self.logger.debug(f"Subscribed global handler {self._handler_name(handler)}")
    
    def unsubscribe(self, event_type: DomainEvent, handler: EventHandler) -> None:
        """Unsubscribe from a specific event type"""
        with self._lock:
            try:
                self._handlers.get(event_type, []).remove(handler)
                self.logger.debug(f"Unsubscribed handler {self._handler_name(handler)} from {event_type.value}")
            except ValueError:
                self.logger.warning(f"Handler {self._handler_name(handler)} was not subscribed to {event_type.value}")
    
    def publish(self, event: EventPayload) -> None:
        """Publish event to all subscribers"""
        with self._lock:
            handlers = list(self._handlers.get(event.event_type, [])) + list(self._global_handlers)
        
        self.logger.debug(f"Publishing event {event.event_type.value} for account:{event.entity_id}")
        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                # Log but don't break the main operation
                self.logger.error(f"Error in event handler {self._handler_name(handler)} for {event.event_type.value}: {e}")
    
    def clear(self) -> None:
        """Clear all handlers"""
        with self._lock:
            self._handlers.clear()
            self._global_handlers.clear()
            self.logger.info("All event handlers cleared")
    
    def get_handler_count(self, event_type: Optional[DomainEvent] = None) -> int:
        """Get count of handlers for a specific event type or all"""
        with self._lock:
            if event_type:
                return len(self._handlers.get(event_type, []))
            total = sum(len(handlers) for handlers in self._handlers.values())
            return total + len(self._global_handlers)
