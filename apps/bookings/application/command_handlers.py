"""
Demand Command Handlers

These are the use cases for the demand lifecycle.
They orchestrate domain operations within transactions.

Commands:
- CreateDemandCommand: Hold capacity for a new demand
- ConfirmDemandCommand: Confirm a demand after external payment
- CancelDemandCommand: Cancel a demand and compute its refund
- CompleteDemandCommand: Mark a demand as taken place
"""

from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Optional
from zoneinfo import ZoneInfo
import logging

from django.conf import settings
from django.utils import timezone

from shared.application.message_bus import MessageBus
from shared.application.uow import DjangoUnitOfWork
from apps.bookings.domain.refund_policy import RefundPolicy
from apps.bookings.models import Demand
from apps.bookings.services import (
    complete_demand,
    confirm_demand,
    create_demand,
    get_demand_for_update,
)

logger = logging.getLogger(__name__)


# ===== Commands =====

@dataclass
class CreateDemandCommand:
    """Command to hold capacity for a stay, a departure or a time slot"""
    resource_id: int
    start: date
    party_size: int
    end: Optional[date] = None
    slot_time: Optional[time] = None
    total_price: Decimal = Decimal('0')
    currency: str = 'RUB'
    contact_email: str = ''
    contact_name: str = ''
    guest: Any = None
    now: Optional[datetime] = None


@dataclass
class ConfirmDemandCommand:
    """Command to confirm a demand after successful payment"""
    demand_id: int


@dataclass
class CancelDemandCommand:
    """
    Command to cancel a demand

    ``now`` pins the clock the refund is computed against; it defaults
    to the current time.
    """
    demand_id: int
    reason: str = ''
    now: Optional[datetime] = None


@dataclass
class CompleteDemandCommand:
    """Command to complete a demand after the event"""
    demand_id: int


@dataclass(frozen=True)
class CancellationOutcome:
    demand_id: int
    new_status: str
    refund_amount: Decimal
    refund_fraction: Decimal
    lead_days: int
    currency: str


# ===== Command Handlers =====

class CreateDemandHandler:
    def handle(self, command: CreateDemandCommand) -> Demand:
        return create_demand(
            command.resource_id,
            command.start,
            command.end,
            party_size=command.party_size,
            slot_time=command.slot_time,
            total_price=command.total_price,
            currency=command.currency,
            contact_email=command.contact_email,
            contact_name=command.contact_name,
            guest=command.guest,
            now=command.now,
        )


class ConfirmDemandHandler:
    def handle(self, command: ConfirmDemandCommand) -> Demand:
        return confirm_demand(command.demand_id)


class CompleteDemandHandler:
    def handle(self, command: CompleteDemandCommand) -> Demand:
        return complete_demand(command.demand_id)


class CancelDemandHandler:
    """
    Handler for cancelling a demand

    Strategy:
    1. Start database transaction (atomic)
    2. Load the demand with SELECT FOR UPDATE, so concurrent cancels of
       the same demand run one after the other
    3. Reject final demands (AlreadyCancelled / AlreadyCompleted)
    4. Compute lead days and the refund tier
    5. Transition to cancelled and write the CancellationRecord
       (one-to-one with the demand, so a second record cannot exist)
    6. Commit, then publish DemandCancelled to the notification handler

    Capacity needs no explicit release: cancelled demand is not committed.
    """

    def __init__(self, policy: Optional[RefundPolicy] = None):
        self.policy = policy or RefundPolicy.from_settings()

    def timezone_for(self, demand: Demand) -> ZoneInfo:
        anchor = settings.INVENTORY.get('REFUND_TIMEZONE_ANCHOR', 'resource')
        if anchor == 'resource':
            return demand.resource.tzinfo
        return ZoneInfo(anchor)

    def handle(self, command: CancelDemandCommand) -> CancellationOutcome:
        now = command.now or timezone.now()
        logger.info(f"Cancelling demand {command.demand_id}, reason: {command.reason!r}")

        with DjangoUnitOfWork() as uow:
            demand = get_demand_for_update(command.demand_id)
            quote = self.policy.quote(demand.price, demand.event_date, now, self.timezone_for(demand))
            demand.cancel(command.reason, now, quote)
            uow.collect_events(demand)

        logger.info(
            f"Demand {demand.booking_code} cancelled: {quote.lead_days} lead days, "
            f"refund {quote.amount} ({quote.fraction})"
        )

        return CancellationOutcome(
            demand_id=demand.pk,
            new_status=demand.status,
            refund_amount=quote.amount.amount,
            refund_fraction=quote.fraction,
            lead_days=quote.lead_days,
            currency=quote.amount.currency,
        )


def register_handlers(bus: MessageBus) -> None:
    """Wire the demand commands into the message bus (idempotent)."""
    handlers = {
        CreateDemandCommand: CreateDemandHandler().handle,
        ConfirmDemandCommand: ConfirmDemandHandler().handle,
        CancelDemandCommand: lambda command: CancelDemandHandler().handle(command),
        CompleteDemandCommand: CompleteDemandHandler().handle,
    }
    for command_type, handler in handlers.items():
        if not bus.has_command_handler(command_type):
            bus.register_command_handler(command_type, handler)
