# checkout.py
import enum
import logging
import threading
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from catalog import ProductCatalog, ReserveOutcome
from exceptions import (CheckoutCancelled, InsufficientStock, InvalidInput, NotFound,
                        PaymentDeclined)
from ledger import TransactionLedger
from models import Cart, Transaction, TransactionLine
from payment import PaymentAuthorizer, PaymentDetails

logger = logging.getLogger("grocery_store.checkout")


class CheckoutState(enum.Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    AWAITING_PAYMENT = "awaiting_payment"
    COMMITTING = "committing"
    COMPLETED = "completed"
    REJECTED = "rejected"


class FailureReason(enum.Enum):
    INVALID_INPUT = "invalid_input"
    NOT_FOUND = "not_found"
    INSUFFICIENT_STOCK = "insufficient_stock"
    PAYMENT_DECLINED = "payment_declined"
    CANCELLED = "cancelled"


_RESERVE_FAILURES = {
    ReserveOutcome.INSUFFICIENT_STOCK: FailureReason.INSUFFICIENT_STOCK,
    ReserveOutcome.NOT_FOUND: FailureReason.NOT_FOUND,
}

_FAILURE_ERRORS = {
    FailureReason.INVALID_INPUT: InvalidInput,
    FailureReason.NOT_FOUND: NotFound,
    FailureReason.INSUFFICIENT_STOCK: InsufficientStock,
    FailureReason.PAYMENT_DECLINED: PaymentDeclined,
    FailureReason.CANCELLED: CheckoutCancelled,
}


class CheckoutResult:
    """Outcome of one checkout attempt."""
    def __init__(self, state: CheckoutState, states: List[CheckoutState],
                 transaction: Optional[Transaction] = None,
                 reason: Optional[FailureReason] = None, message: str = ""):
        self.state = state
        self.states = states
        self.transaction = transaction
        self.reason = reason
        self.message = message

    @property
    def success(self) -> bool:
        return self.state is CheckoutState.COMPLETED

    @property
    def transaction_id(self) -> Optional[str]:
        return self.transaction.transaction_id if self.transaction else None

    def raise_for_failure(self):
        """Raise the matching StoreError if the checkout was rejected."""
        if not self.success:
            raise _FAILURE_ERRORS[self.reason](self.message)
        return self

    def __repr__(self):
        if self.success:
            return f"CheckoutResult(completed, {self.transaction_id})"
        return f"CheckoutResult(rejected, {self.reason.value}: {self.message})"


class _Run:
    """State bookkeeping for a single checkout call."""
    def __init__(self, customer_id: str):
        self.customer_id = customer_id
        self.states = [CheckoutState.IDLE]

    @property
    def state(self):
        return self.states[-1]

    def enter(self, state: CheckoutState):
        logger.debug(f"Checkout for {self.customer_id}: {self.state.value} -> {state.value}")
        self.states.append(state)

    def reject(self, reason: FailureReason, message: str) -> CheckoutResult:
        logger.warning(f"Checkout for {self.customer_id} rejected in "
                       f"{self.state.value}: {reason.value} ({message})")
        self.enter(CheckoutState.REJECTED)
        return CheckoutResult(CheckoutState.REJECTED, list(self.states),
                              reason=reason, message=message)


class CheckoutEngine:
    """
    Turns a cart into a sale.

    The flow is validate -> authorize payment -> commit stock -> record.
    Validation is only a pre-check; the authoritative stock check is the
    atomic reservation made while committing. No catalog lock is held
    while the payment authorizer runs.
    """
    def __init__(self, catalog: ProductCatalog, ledger: TransactionLedger,
                 authorizer: PaymentAuthorizer):
        self.catalog = catalog
        self.ledger = ledger
        self.authorizer = authorizer

    def checkout(self, cart: Cart, payment: PaymentDetails, customer_id: str,
                 cancel_event: Optional[threading.Event] = None) -> CheckoutResult:
        """
        Run a checkout and return its result. Business failures never raise.

        ``cancel_event`` lets the caller abandon the checkout. It is honored
        up to the end of payment authorization, before any stock has been
        touched; once committing starts it is ignored.

        On success the transaction is in the ledger and the cart is cleared.
        On failure catalog stock is exactly as it was before the call and
        the cart is left untouched.
        """
        run = _Run(customer_id)
        run.enter(CheckoutState.VALIDATING)
        if cart.is_empty():
            return run.reject(FailureReason.INVALID_INPUT, "Cart is empty.")
        if not payment.is_complete():
            return run.reject(FailureReason.INVALID_INPUT, "Please fill in all payment fields.")

        lines, failure = self._validate(cart)
        if failure:
            return run.reject(*failure)
        total = sum((tl.line_total for tl in lines), Decimal("0.00"))

        if cancel_event is not None and cancel_event.is_set():
            return run.reject(FailureReason.CANCELLED, "Checkout cancelled before payment.")

        run.enter(CheckoutState.AWAITING_PAYMENT)
        if not self._authorize(total, payment):
            return run.reject(FailureReason.PAYMENT_DECLINED,
                              "Payment failed. Please check your payment details.")
        if cancel_event is not None and cancel_event.is_set():
            return run.reject(FailureReason.CANCELLED, "Checkout cancelled during payment.")

        run.enter(CheckoutState.COMMITTING)
        try:
            transaction_id = self.authorizer.new_transaction_id()
        except Exception:
            logger.exception("Payment authorizer could not issue a transaction id")
            return run.reject(FailureReason.PAYMENT_DECLINED,
                              "Payment could not be completed; please retry.")

        failure = self._commit(lines)
        if failure:
            return run.reject(*failure)

        transaction = Transaction(
            transaction_id=transaction_id,
            customer_id=customer_id,
            lines=tuple(lines),
            timestamp=datetime.now(),
        )
        try:
            self.ledger.record(transaction)
        except Exception:
            logger.exception(f"Recording transaction {transaction_id} failed")
            self._rollback(lines)
            return run.reject(FailureReason.INVALID_INPUT,
                              f"Transaction {transaction_id} could not be recorded; please retry.")
        cart.clear()
        run.enter(CheckoutState.COMPLETED)
        logger.info(f"Checkout {transaction.transaction_id} completed for {customer_id}: "
                    f"${transaction.total_amount:.2f}")
        return CheckoutResult(CheckoutState.COMPLETED, list(run.states), transaction=transaction)

    def _validate(self, cart: Cart) -> Tuple[List[TransactionLine], Optional[tuple]]:
        """Check every line against current stock and freeze prices.

        Lines come back in ascending product id order, which is also
        the commit order.
        """
        frozen = []
        for line in cart.lines():
            try:
                product = self.catalog.get_product(line.product_id)
            except NotFound:
                return [], (FailureReason.NOT_FOUND,
                            f"Product {line.product_id} no longer exists.")
            if product.stock < line.quantity:
                return [], (FailureReason.INSUFFICIENT_STOCK,
                            f"Not enough stock for {product.name}: "
                            f"requested {line.quantity}, available {product.stock}.")
            frozen.append(TransactionLine(product.id, product.name, line.quantity, product.price))
        return frozen, None

    def _authorize(self, total: Decimal, payment: PaymentDetails) -> bool:
        try:
            return bool(self.authorizer.authorize(
                total, payment.card_number, payment.expiry, payment.cvv))
        except Exception:
            logger.exception(f"Payment authorizer failed for {payment.masked_card}")
            return False

    def _commit(self, lines: List[TransactionLine]) -> Optional[tuple]:
        """Reserve every line or none of them."""
        reserved = []
        for tl in lines:
            outcome = self.catalog.try_reserve_and_decrement(tl.product_id, tl.quantity)
            if outcome is ReserveOutcome.OK:
                reserved.append(tl)
                continue
            self._rollback(reserved)
            return (_RESERVE_FAILURES[outcome],
                    f"Stock for {tl.name} changed during checkout; please retry.")
        return None

    def _rollback(self, reserved: List[TransactionLine]):
        for tl in reversed(reserved):
            try:
                self.catalog.increase_stock(tl.product_id, tl.quantity)
            except NotFound:
                logger.error(f"Rollback of {tl.quantity} x product {tl.product_id} "
                             f"failed: product was deleted")
        if reserved:
            logger.info(f"Rolled back {len(reserved)} reserved line(s)")
