# exceptions.py
class StoreError(Exception):
    """Base class for all grocery store errors."""
    retryable = False


class InvalidInput(StoreError):
    """Malformed arguments; the caller must fix its input."""


class NotFound(StoreError):
    """A referenced product, user or transaction does not exist."""


class InsufficientStock(StoreError):
    """Requested quantity exceeds current stock. May succeed after a restock."""
    retryable = True


class PaymentDeclined(StoreError):
    """The payment authorizer rejected the charge."""


class CheckoutCancelled(StoreError):
    """The customer abandoned the checkout before any stock was taken."""
