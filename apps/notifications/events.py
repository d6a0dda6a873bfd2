"""Payloads handed to the notification tasks."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import Decimal


@dataclass(frozen=True)
class CancellationEvent:
    booking_id: int
    booking_code: str
    contact: str
    contact_name: str
    resource_name: str
    event_date: str
    refund_amount: Decimal
    refund_fraction: Decimal
    currency: str
    reason: str

    def to_payload(self) -> dict:
        """JSON-safe form passed through the Celery broker."""
        data = asdict(self)
        data["refund_amount"] = str(self.refund_amount)
        data["refund_fraction"] = str(self.refund_fraction)
        return data

    @classmethod
    def from_payload(cls, payload: dict) -> "CancellationEvent":
        data = dict(payload)
        data["refund_amount"] = Decimal(data["refund_amount"])
        data["refund_fraction"] = Decimal(data["refund_fraction"])
        return cls(**data)
