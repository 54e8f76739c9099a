# models.py
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Tuple

from exceptions import InvalidInput, NotFound

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Convert a number or numeric string to a Decimal rounded to cents."""
    if isinstance(value, bool):
        raise InvalidInput(f"Invalid amount: {value!r}")
    try:
        # str() first so floats like 2.99 stay 2.99
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise InvalidInput(f"Invalid amount: {value!r}") from e
    if not amount.is_finite():
        raise InvalidInput(f"Invalid amount: {value!r}")
    return amount.quantize(CENT)


class Product:
    """A product record. Instances handed out by the catalog are snapshots."""
    def __init__(self, id: int, name: str, price, stock: int, category: str):
        self.id = id
        self.name = name
        self.price = to_money(price)
        self.stock = stock
        self.category = category

    def copy(self):
        return Product(self.id, self.name, self.price, self.stock, self.category)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'price': self.price,
            'quantity_in_stock': self.stock,
            'category': self.category,
        }

    def __eq__(self, other):
        if not isinstance(other, Product):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return (f"Product(id={self.id}, name={self.name!r}, price={self.price}, "
                f"stock={self.stock}, category={self.category!r})")


class CartLine:
    """One line in a customer's cart."""
    def __init__(self, product_id: int, quantity: int):
        self.product_id = product_id
        self.quantity = quantity

    def __eq__(self, other):
        if not isinstance(other, CartLine):
            return NotImplemented
        return (self.product_id, self.quantity) == (other.product_id, other.quantity)

    def __repr__(self):
        return f"CartLine(product_id={self.product_id}, quantity={self.quantity})"


class PricedLine:
    """A cart line priced against the current catalog."""
    def __init__(self, product: Product, quantity: int):
        self.product = product
        self.quantity = quantity

    @property
    def line_total(self) -> Decimal:
        return (self.product.price * self.quantity).quantize(CENT)


class CartSummary:
    """Cart contents priced at display time.

    Lines whose product was deleted from the catalog are left out of
    ``lines`` and ``total`` and their ids are listed in ``missing``.
    """
    def __init__(self, lines: List[PricedLine], missing: List[int]):
        self.lines = lines
        self.missing = missing

    @property
    def total(self) -> Decimal:
        return sum((pl.line_total for pl in self.lines), Decimal("0.00"))


def _check_quantity(quantity):
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidInput(f"Quantity must be an integer, got {quantity!r}")


class Cart:
    """Holds one customer's intended purchase until checkout."""
    def __init__(self):
        self._lines: Dict[int, CartLine] = {}

    def add_item(self, product_id: int, quantity: int):
        # stock is checked at checkout, not here
        _check_quantity(quantity)
        if quantity <= 0:
            raise InvalidInput("Quantity must be greater than 0.")
        line = self._lines.get(product_id)
        if line:
            line.quantity += quantity
        else:
            self._lines[product_id] = CartLine(product_id, quantity)

    def remove_item(self, product_id: int) -> bool:
        return self._lines.pop(product_id, None) is not None

    def update_quantity(self, product_id: int, quantity: int) -> bool:
        """Set the quantity of an existing line; 0 or less removes it.

        Returns False when the cart has no line for ``product_id``.
        """
        _check_quantity(quantity)
        if product_id not in self._lines:
            return False
        if quantity <= 0:
            self.remove_item(product_id)
        else:
            self._lines[product_id].quantity = quantity
        return True

    def lines(self) -> List[CartLine]:
        """Copies of the lines, ordered by product id."""
        return [CartLine(pid, self._lines[pid].quantity) for pid in sorted(self._lines)]

    def quantity_of(self, product_id: int) -> int:
        line = self._lines.get(product_id)
        return line.quantity if line else 0

    def summarize(self, catalog) -> CartSummary:
        priced, missing = [], []
        for line in self.lines():
            try:
                product = catalog.get_product(line.product_id)
            except NotFound:
                missing.append(line.product_id)
                continue
            priced.append(PricedLine(product, line.quantity))
        return CartSummary(priced, missing)

    def total_amount(self, catalog) -> Decimal:
        """Total at current catalog prices. Deleted products are skipped."""
        return self.summarize(catalog).total

    def clear(self):
        self._lines.clear()

    def is_empty(self) -> bool:
        return not self._lines

    def __len__(self):
        return len(self._lines)


@dataclass(frozen=True)
class TransactionLine:
    """Product id, quantity and unit price frozen at the time of sale."""
    product_id: int
    name: str
    quantity: int
    unit_price: Decimal

    @property
    def line_total(self) -> Decimal:
        return (self.unit_price * self.quantity).quantize(CENT)


@dataclass(frozen=True)
class Transaction:
    transaction_id: str
    customer_id: str
    lines: Tuple[TransactionLine, ...]
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def total_amount(self) -> Decimal:
        return sum((tl.line_total for tl in self.lines), Decimal("0.00"))

    def describe(self) -> str:
        return (f"Transaction {self.transaction_id} - Customer: {self.customer_id} - "
                f"Amount: ${self.total_amount:.2f} - Date: {self.timestamp:%Y-%m-%d %H:%M}")
