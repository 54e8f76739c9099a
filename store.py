# store.py
import logging

from auth import UserDirectory
from catalog import ProductCatalog
from checkout import CheckoutEngine
from ledger import TransactionLedger
from payment import PaymentAuthorizer, SimulatedPaymentGateway

logger = logging.getLogger("grocery_store.store")

DEFAULT_PRODUCTS = [
    ("Apples", "2.99", 50, "Fruits"),
    ("Bananas", "1.49", 30, "Fruits"),
    ("Milk", "3.99", 20, "Dairy"),
    ("Bread", "2.49", 25, "Bakery"),
    ("Chicken Breast", "8.99", 15, "Meat"),
    ("Rice", "4.99", 40, "Grains"),
    ("Tomatoes", "3.49", 35, "Vegetables"),
    ("Cheese", "5.99", 18, "Dairy"),
    ("Eggs", "2.99", 22, "Dairy"),
    ("Orange Juice", "4.49", 12, "Beverages"),
]


class StoreContext:
    """
    The shared state of one running store.

    Build exactly one per process at startup and hand it (or its parts)
    to whatever needs the catalog, ledger or checkout.
    """
    def __init__(self, config=None, authorizer: PaymentAuthorizer = None):
        self.config = config or {}
        if authorizer is None:
            delay = self.config.get("payment", {}).get("processing_delay", 1.0)
            authorizer = SimulatedPaymentGateway(processing_delay=delay)
        self.catalog = ProductCatalog()
        self.ledger = TransactionLedger()
        self.users = UserDirectory()
        self.authorizer = authorizer
        self.checkout_engine = CheckoutEngine(self.catalog, self.ledger, authorizer)

    @property
    def low_stock_threshold(self) -> int:
        return int(self.config.get("low_stock_threshold", 10))

    def seed_defaults(self):
        """Load the default accounts and grocery products."""
        self.users.seed_defaults()
        for name, price, qty, category in DEFAULT_PRODUCTS:
            self.catalog.add_product(name, price, qty, category)
        logger.info(f"Seeded {len(DEFAULT_PRODUCTS)} products and default users")

    def checkout(self, session, payment, cancel_event=None):
        """Check out the cart of a logged-in customer."""
        return self.checkout_engine.checkout(session.cart, payment, session.username,
                                             cancel_event=cancel_event)
