# backend/artspace/services/payment_gateway.py
"""
Payment collaborator seam.

BookingService asks the gateway to start a charge after a priced booking
has been committed. The processor later reports the outcome through
``BookingService.confirm_payment``. Processor integration lives outside
this package; ``NullPaymentGateway`` only records the request.
"""

from dataclasses import dataclass
from decimal import Decimal
import logging
import threading
from typing import List, Protocol

from ..core.ulid_helper import generate_ulid

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentIntent:
    """A charge the processor has been asked to collect."""

    booking_id: str
    amount: Decimal
    currency: str
    reference: str


class PaymentGateway(Protocol):
    def start_payment(self, booking_id: str, amount: Decimal, currency: str) -> PaymentIntent:
        """Ask the processor to collect ``amount``; returns the processor reference."""
        ...


class NullPaymentGateway:
    """In-process gateway that hands out local references and keeps a log."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.intents: List[PaymentIntent] = []

    def start_payment(self, booking_id: str, amount: Decimal, currency: str) -> PaymentIntent:
        intent = PaymentIntent(
            booking_id=booking_id,
            amount=amount,
            currency=currency,
            reference=f"pay_{generate_ulid()}",
        )
        with self._lock:
            self.intents.append(intent)
        logger.info(
            "Payment requested",
            extra={"booking_id": booking_id, "amount": str(amount), "currency": currency},
        )
        return intent


_default_gateway = NullPaymentGateway()


def get_payment_gateway() -> PaymentGateway:
    """Process-wide default gateway."""
    return _default_gateway
