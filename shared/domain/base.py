"""
Base Domain Classes

Building blocks shared by every app:
- ValueObject: Immutable objects compared by value
- DomainEvent: Events that represent something that happened
- RecordsEvents: Mixin that lets Django models collect domain events
  until the surrounding unit of work commits
"""

from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List
from uuid import UUID, uuid4


@dataclass(frozen=True)
class ValueObject(ABC):
    """
    Base class for value objects

    Value objects are immutable and have no identity.
    Two value objects are equal if all their attributes are equal.
    """
    pass


@dataclass(kw_only=True)
class DomainEvent:
    """
    Base class for domain events

    Domain events represent something that happened in the domain.
    They are published by the message bus after the transaction commits.
    """
    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    aggregate_id: Any = None

    def to_dict(self) -> dict:
        """Convert event to dictionary for serialization"""
        return {
            'event_id': str(self.event_id),
            'event_type': self.__class__.__name__,
            'occurred_at': self.occurred_at.isoformat(),
            'aggregate_id': str(self.aggregate_id) if self.aggregate_id is not None else None,
        }


class RecordsEvents:
    """
    Mixin for aggregate roots persisted as Django models

    Events are kept on the instance (not in the database) and pulled
    by the unit of work, which publishes them after commit.
    """

    def _event_buffer(self) -> List[DomainEvent]:
        return self.__dict__.setdefault('_pending_events', [])

    def add_event(self, event: DomainEvent):
        """Add a domain event to be published"""
        self._event_buffer().append(event)

    def clear_events(self):
        """Clear all collected events (called after publishing)"""
        self._event_buffer().clear()

    @property
    def events(self) -> List[DomainEvent]:
        """Get copy of collected events"""
        return list(self._event_buffer())
