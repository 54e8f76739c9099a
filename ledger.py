# ledger.py
import logging
import threading
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from exceptions import InvalidInput, NotFound
from models import Transaction

logger = logging.getLogger("grocery_store.ledger")


class TransactionLedger:
    """
    Append-only record of completed sales.

    Appends are serialized by the ledger's own lock, independent of
    the catalog's locks. Recorded transactions are immutable and are
    never edited or removed.
    """
    def __init__(self):
        self._transactions: List[Transaction] = []
        self._by_id = {}
        self._lock = threading.Lock()

    def record(self, transaction: Transaction):
        if not isinstance(transaction, Transaction):
            raise InvalidInput(f"Expected a Transaction, got {type(transaction).__name__}")
        with self._lock:
            if transaction.transaction_id in self._by_id:
                raise InvalidInput(f"Transaction {transaction.transaction_id} already recorded.")
            self._transactions.append(transaction)
            self._by_id[transaction.transaction_id] = transaction
        logger.info(f"Recorded transaction {transaction.transaction_id} "
                    f"for {transaction.customer_id}: ${transaction.total_amount:.2f}")

    def all_transactions(self) -> List[Transaction]:
        """All transactions in the order they were recorded."""
        with self._lock:
            return list(self._transactions)

    def get(self, transaction_id: str) -> Transaction:
        with self._lock:
            tx = self._by_id.get(transaction_id)
        if tx is None:
            raise NotFound(f"Transaction {transaction_id} not found.")
        return tx

    def transactions_between(self, date_from: Optional[datetime] = None,
                             date_to: Optional[datetime] = None) -> List[Transaction]:
        """List transactions within an optional, inclusive time range."""
        return [t for t in self.all_transactions()
                if (date_from is None or t.timestamp >= date_from)
                and (date_to is None or t.timestamp <= date_to)]

    def transactions_for(self, customer_id: str) -> List[Transaction]:
        return [t for t in self.all_transactions() if t.customer_id == customer_id]

    def total_revenue(self) -> Decimal:
        return sum((t.total_amount for t in self.all_transactions()), Decimal("0.00"))

    def __len__(self):
        with self._lock:
            return len(self._transactions)
