# payment.py
# Payment collaborator used by checkout. The checkout engine only relies on
# the PaymentAuthorizer contract; SimulatedPaymentGateway is the stand-in used
# by the application and the tests. No real payment network is contacted.
import itertools
import logging
import threading
import time
from decimal import Decimal

logger = logging.getLogger("grocery_store.payment")


class PaymentDetails:
    """Card details entered at checkout."""
    def __init__(self, card_number: str, expiry: str, cvv: str):
        self.card_number = (card_number or "").strip()
        self.expiry = (expiry or "").strip()
        self.cvv = (cvv or "").strip()

    def is_complete(self) -> bool:
        return bool(self.card_number and self.expiry and self.cvv)

    @property
    def masked_card(self) -> str:
        return "*" * max(len(self.card_number) - 4, 0) + self.card_number[-4:]

    def __repr__(self):
        return f"PaymentDetails(card={self.masked_card!r}, expiry={self.expiry!r})"


class PaymentAuthorizer:
    """Contract for payment authorization."""
    def authorize(self, amount: Decimal, card_number: str, expiry: str, cvv: str) -> bool:
        raise NotImplementedError

    def new_transaction_id(self) -> str:
        raise NotImplementedError


class SimulatedPaymentGateway(PaymentAuthorizer):
    """
    Pretend card processor.

    Approves a charge when the card number has at least 13 characters,
    expiry and cvv are filled in, and the amount is positive. Each call
    sleeps for ``processing_delay`` seconds to simulate network latency.
    """
    MIN_CARD_LENGTH = 13

    def __init__(self, processing_delay: float = 1.0):
        self.processing_delay = processing_delay
        self._sequence = itertools.count(1)
        self._lock = threading.Lock()

    def authorize(self, amount: Decimal, card_number: str, expiry: str, cvv: str) -> bool:
        if self.processing_delay > 0:
            time.sleep(self.processing_delay)
        approved = (len(card_number or "") >= self.MIN_CARD_LENGTH
                    and bool(expiry) and bool(cvv) and amount > 0)
        logger.info(f"Authorization for ${amount:.2f} "
                    f"{'approved' if approved else 'declined'}")
        return approved

    def new_transaction_id(self) -> str:
        with self._lock:
            seq = next(self._sequence)
        return f"TXN{int(time.time() * 1000)}-{seq:04d}"
