"""
Inventory Domain Events

Published after the blocking override store commits.
"""

from dataclasses import dataclass
from datetime import date

from shared.domain.base import DomainEvent


@dataclass(kw_only=True)
class DateBlocked(DomainEvent):
    """
    Event: An operator closed a date for booking

    Existing demand on that date is left untouched.
    """
    resource_id: int
    date: date
    reason: str
    created: bool


@dataclass(kw_only=True)
class DateUnblocked(DomainEvent):
    """Event: An operator reopened a previously blocked date"""
    resource_id: int
    date: date
