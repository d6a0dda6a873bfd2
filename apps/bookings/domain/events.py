"""
Demand Domain Events

Events that represent things that have happened to a demand.
These are published after successful transaction commits.
"""

from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal
from typing import Optional

from shared.domain.base import DomainEvent


@dataclass(kw_only=True)
class DemandCreated(DomainEvent):
    """
    Event: A new demand was accepted (status pending)

    Capacity for its dates is held from this moment on.
    """
    demand_id: int
    resource_id: int
    start_date: date
    end_date: date
    party_size: int
    slot_time: Optional[time] = None


@dataclass(kw_only=True)
class DemandConfirmed(DomainEvent):
    """Event: External payment confirmation arrived (pending -> confirmed)"""
    demand_id: int
    resource_id: int


@dataclass(kw_only=True)
class DemandCompleted(DomainEvent):
    """Event: The stay or tour took place (terminal)"""
    demand_id: int
    resource_id: int


@dataclass(kw_only=True)
class DemandCancelled(DomainEvent):
    """
    Event: Demand was cancelled (terminal)

    Triggers:
    - Cancellation email to the contact (notifications app)

    Capacity is released implicitly: cancelled demand is not committed.
    """
    demand_id: int
    resource_id: int
    event_date: date
    lead_days: int
    refund_amount: Decimal
    refund_fraction: Decimal
    currency: str
    reason: str
    contact_email: str = ''
    contact_name: str = ''

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            'demand_id': self.demand_id,
            'resource_id': self.resource_id,
            'event_date': self.event_date.isoformat(),
            'lead_days': self.lead_days,
            'refund_amount': str(self.refund_amount),
            'refund_fraction': str(self.refund_fraction),
            'currency': self.currency,
            'reason': self.reason,
        })
        return data
