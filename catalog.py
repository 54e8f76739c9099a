# catalog.py
import enum
import logging
import threading
from contextlib import contextmanager
from typing import Dict, List

from exceptions import InvalidInput, NotFound
from models import Product, to_money

logger = logging.getLogger("grocery_store.catalog")

EDITABLE_FIELDS = ("name", "price", "stock", "category")


class ReserveOutcome(enum.Enum):
    OK = "ok"
    INSUFFICIENT_STOCK = "insufficient_stock"
    NOT_FOUND = "not_found"


def _require_text(label: str, value):
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput(f"{label} must not be empty.")
    return value.strip()


def _require_count(label: str, value):
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInput(f"{label} must be an integer, got {value!r}")
    if value < 0:
        raise InvalidInput(f"{label} must not be negative.")
    return value


def _require_price(value):
    price = to_money(value)
    if price < 0:
        raise InvalidInput("Price must not be negative.")
    return price


class ProductCatalog:
    """
    In-memory product store and single source of truth for stock.

    Each product has its own lock; every read and write of a product
    goes through it, so stock changes for one product are serialized
    while different products can be updated in parallel. ``_lock``
    guards the product map and the id counter and is never held while
    waiting for a product lock.
    """
    def __init__(self):
        self._products: Dict[int, Product] = {}
        self._locks: Dict[int, threading.Lock] = {}
        self._lock = threading.Lock()
        self._next_id = 1

    @contextmanager
    def _locked(self, product_id: int):
        with self._lock:
            lock = self._locks.get(product_id)
        if lock is None:
            raise NotFound(f"Product {product_id} not found.")
        with lock:
            product = self._products.get(product_id)
            # deleted while we were waiting for the lock
            if product is None:
                raise NotFound(f"Product {product_id} not found.")
            yield product

    def _ids(self) -> List[int]:
        with self._lock:
            return sorted(self._products)

    # Product operations
    def add_product(self, name: str, price, quantity: int, category: str) -> Product:
        """Insert a new product and return a snapshot of it.

        Ids increase monotonically and are never reused, even after
        the product is deleted.
        """
        name = _require_text("Name", name)
        category = _require_text("Category", category)
        price = _require_price(price)
        quantity = _require_count("Quantity", quantity)
        with self._lock:
            product = Product(self._next_id, name, price, quantity, category)
            self._next_id += 1
            self._products[product.id] = product
            self._locks[product.id] = threading.Lock()
        logger.info(f"Added product {product.id} ({name}), stock {quantity}")
        return product.copy()

    def get_product(self, product_id: int) -> Product:
        with self._locked(product_id) as product:
            return product.copy()

    def list_products(self) -> List[Product]:
        """Snapshot of all products ordered by id."""
        result = []
        for pid in self._ids():
            try:
                result.append(self.get_product(pid))
            except NotFound:
                continue
        return result

    def list_available(self) -> List[Product]:
        return [p for p in self.list_products() if p.stock > 0]

    def list_low_stock(self, threshold: int = 10) -> List[Product]:
        """Products with stock at or below ``threshold``, lowest first."""
        low = [p for p in self.list_products() if p.stock <= threshold]
        return sorted(low, key=lambda p: (p.stock, p.id))

    def search_products(self, keyword: str) -> List[Product]:
        """Search products by name or category."""
        kw = (keyword or "").strip().lower()
        return [p for p in self.list_products()
                if kw in p.name.lower() or kw in p.category.lower()]

    def categories(self) -> List[str]:
        return sorted({p.category for p in self.list_products()})

    def update_product(self, product_id: int, **fields) -> Product:
        """Overwrite any of name, price, stock and category.

        All values are validated before anything is changed.
        """
        unknown = set(fields) - set(EDITABLE_FIELDS)
        if unknown:
            raise InvalidInput(f"Cannot update field(s): {', '.join(sorted(unknown))}")
        changes = {}
        if "name" in fields:
            changes["name"] = _require_text("Name", fields["name"])
        if "category" in fields:
            changes["category"] = _require_text("Category", fields["category"])
        if "price" in fields:
            changes["price"] = _require_price(fields["price"])
        if "stock" in fields:
            changes["stock"] = _require_count("Stock", fields["stock"])
        with self._locked(product_id) as product:
            for key, value in changes.items():
                setattr(product, key, value)
            snapshot = product.copy()
        logger.info(f"Updated product {product_id}: {sorted(changes)}")
        return snapshot

    def delete_product(self, product_id: int):
        with self._locked(product_id):
            with self._lock:
                del self._products[product_id]
                del self._locks[product_id]
        logger.info(f"Deleted product {product_id}")

    # Stock operations
    def try_reserve_and_decrement(self, product_id: int, quantity: int) -> ReserveOutcome:
        """
        Atomically take ``quantity`` units of a product.

        Stock is only decremented when enough is available; otherwise
        nothing changes. Calls on the same product are linearizable, so
        two callers can never both take the last units.

        Raises:
            ValueError: if quantity is not a positive integer. Callers
                validate quantities before getting here.
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValueError(f"Reservation quantity must be a positive integer, got {quantity!r}")
        try:
            with self._locked(product_id) as product:
                if product.stock < quantity:
                    logger.debug(f"Reserve {quantity} of product {product_id} refused, "
                                 f"stock {product.stock}")
                    return ReserveOutcome.INSUFFICIENT_STOCK
                product.stock -= quantity
                logger.debug(f"Reserved {quantity} of product {product_id}, stock now {product.stock}")
                return ReserveOutcome.OK
        except NotFound:
            return ReserveOutcome.NOT_FOUND

    def restock(self, product_id: int, new_quantity: int) -> Product:
        """Set the stock level of a product (supplier restocking)."""
        new_quantity = _require_count("Stock", new_quantity)
        with self._locked(product_id) as product:
            product.stock = new_quantity
            snapshot = product.copy()
        logger.info(f"Restocked product {product_id} to {new_quantity}")
        return snapshot

    def increase_stock(self, product_id: int, delta: int) -> int:
        """Add ``delta`` units to a product's stock and return the new level."""
        delta = _require_count("Delta", delta)
        with self._locked(product_id) as product:
            product.stock += delta
            stock = product.stock
        logger.debug(f"Increased stock of product {product_id} by {delta}, now {stock}")
        return stock

    def __len__(self):
        with self._lock:
            return len(self._products)

    def __contains__(self, product_id):
        with self._lock:
            return product_id in self._products
