"""
Cancellation Refund Policy

Refunds are derived from the number of days left before the event:

    lead_days >= 7  -> 85 %
    lead_days >= 3  -> 50 %
    otherwise       -> nothing

``lead_days`` is the ceiling of (event start - now) in days, where the
event starts at midnight of its date in the resource's time zone. A
cancellation after the event has started gives negative lead days and
falls into the lowest tier. Amounts are floored to whole currency units.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from decimal import Decimal
from typing import Iterable, Sequence, Tuple

from django.conf import settings  # type: ignore

from shared.domain.base import ValueObject
from shared.domain.value_objects import Money

_DAY = timedelta(days=1)


@dataclass(frozen=True)
class RefundTier(ValueObject):
    """Fraction refunded when at least ``min_lead_days`` remain."""
    min_lead_days: int
    fraction: Decimal

    def __post_init__(self):
        if not isinstance(self.fraction, Decimal):
            object.__setattr__(self, 'fraction', Decimal(str(self.fraction)))
        if self.min_lead_days < 0:
            raise ValueError("min_lead_days cannot be negative")
        if not Decimal('0') <= self.fraction <= Decimal('1'):
            raise ValueError(f"Refund fraction must be within [0, 1], got {self.fraction}")


@dataclass(frozen=True)
class RefundQuote(ValueObject):
    lead_days: int
    fraction: Decimal
    amount: Money


class RefundPolicy:
    """Ordered, gap-free refund tiers with a catch-all tier at 0 days."""

    def __init__(self, tiers: Iterable[RefundTier]):
        ordered = sorted(tiers, key=lambda tier: tier.min_lead_days, reverse=True)
        if not ordered:
            raise ValueError("At least one refund tier is required")
        thresholds = [tier.min_lead_days for tier in ordered]
        if len(set(thresholds)) != len(thresholds):
            raise ValueError(f"Refund tiers overlap: {thresholds}")
        if ordered[-1].min_lead_days != 0:
            raise ValueError("Refund tiers must include a catch-all tier starting at 0 days")
        self.tiers: Tuple[RefundTier, ...] = tuple(ordered)

    @classmethod
    def from_settings(cls) -> 'RefundPolicy':
        return cls.from_pairs(settings.INVENTORY['REFUND_TIERS'])

    @classmethod
    def from_pairs(cls, pairs: Sequence[Tuple[int, str]]) -> 'RefundPolicy':
        return cls(RefundTier(int(days), Decimal(str(fraction))) for days, fraction in pairs)

    @staticmethod
    def event_start(event_date: date, tz: tzinfo) -> datetime:
        return datetime.combine(event_date, time.min, tzinfo=tz)

    @classmethod
    def lead_days(cls, event_date: date, now: datetime, tz: tzinfo) -> int:
        """Whole days left before the event starts, rounded up."""
        if now.tzinfo is None:
            raise ValueError("now must be timezone-aware")
        delta = cls.event_start(event_date, tz) - now
        # Exact ceiling on microseconds; float division drifts at day edges.
        micros = delta // timedelta(microseconds=1)
        day_micros = _DAY // timedelta(microseconds=1)
        return -(-micros // day_micros)

    def tier_for(self, lead_days: int) -> RefundTier:
        for tier in self.tiers:
            if lead_days >= tier.min_lead_days:
                return tier
        # Event already started.
        return self.tiers[-1]

    def refund_for(self, total_price: Money, lead_days: int) -> RefundQuote:
        tier = self.tier_for(lead_days)
        amount = (total_price * tier.fraction).floor()
        return RefundQuote(lead_days=lead_days, fraction=tier.fraction, amount=amount)

    def quote(self, total_price: Money, event_date: date, now: datetime, tz: tzinfo) -> RefundQuote:
        return self.refund_for(total_price, self.lead_days(event_date, now, tz))
