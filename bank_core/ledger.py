"""
Undoable Transaction Ledger

Per-account stack of balance-affecting transactions. The bottom entry is
always the opening (Initial) deposit and can never be undone; every other
entry is a Deposit or Withdraw that can be popped in LIFO order.

The ledger is purely structural: it records transactions and knows how each
one moves a balance, but the owning account applies the balance change.
"""

from decimal import Decimal
from datetime import datetime, timezone
from dataclasses import dataclass, field
from typing import Iterator, List, Optional
from enum import Enum

from .amounts import ZERO
from .errors import InvalidAmount, InvalidOperation, NothingToUndo


class TransactionKind(Enum):
    """Kinds of balance-affecting transactions"""
    INITIAL = "Initial"    # Opening deposit, sets the balance
    DEPOSIT = "Deposit"    # Adds to the balance
    WITHDRAW = "Withdraw"  # Subtracts from the balance


@dataclass(frozen=True)
class Transaction:
    """Immutable ledger entry"""
    kind: TransactionKind
    amount: Decimal
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        if not isinstance(self.amount, Decimal):
            raise InvalidAmount(self.amount, "Transaction amount must be a Decimal")
        if not self.amount.is_finite():
            raise InvalidAmount(self.amount, "Transaction amount must be finite")
        if self.amount < ZERO:
            raise InvalidAmount(self.amount, "Transaction amount cannot be negative")

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.amount}"


def balance_effect(transaction: Transaction) -> Decimal:
    """
    Signed change a non-initial transaction applies to a balance

    Raises:
        InvalidOperation: For INITIAL entries, which set rather than change a balance
    """
    if transaction.kind == TransactionKind.DEPOSIT:
        return transaction.amount
    if transaction.kind == TransactionKind.WITHDRAW:
        return -transaction.amount
    raise InvalidOperation("Initial transaction sets the balance and has no delta")


def reversal_effect(transaction: Transaction) -> Decimal:
    """Signed change that undoes a transaction's balance effect"""
    if transaction.kind == TransactionKind.INITIAL:
        raise InvalidOperation("Initial transaction cannot be reversed")
    return -balance_effect(transaction)


class Ledger:
    """
    Ordered transaction history for one account

    Entries are stored oldest first; all reads are most-recent first.
    """

    def __init__(self):
        self._entries: List[Transaction] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Transaction]:
        return self.history()

    @property
    def is_empty(self) -> bool:
        return not self._entries

    @property
    def top(self) -> Optional[Transaction]:
        """Most recent transaction, or None for an empty ledger"""
        return self._entries[-1] if self._entries else None

    @property
    def can_undo(self) -> bool:
        """True while a Deposit or Withdraw sits above the Initial entry"""
        return len(self._entries) > 1

    def append(self, kind: TransactionKind, amount: Decimal) -> Transaction:
        """
        Push a new transaction on top of the ledger

        Args:
            kind: Transaction kind
            amount: Non-negative amount

        Returns:
            The recorded Transaction

        Raises:
            InvalidAmount: If amount is not a Decimal, or is negative
            InvalidOperation: If INITIAL is appended to a non-empty ledger, or
                anything else is appended to an empty one
        """
        if kind == TransactionKind.INITIAL and self._entries:
            raise InvalidOperation("Initial transaction can only open an empty ledger")
        if kind != TransactionKind.INITIAL and not self._entries:
            raise InvalidOperation(f"{kind.value} requires an Initial transaction first")

        transaction = Transaction(kind=kind, amount=amount)
        self._entries.append(transaction)
        return transaction

    def undo_last(self) -> Transaction:
        """
        Remove and return the most recent transaction

        Raises:
            NothingToUndo: If the ledger is empty or holds only the Initial entry
        """
        if not self.can_undo:
            raise NothingToUndo()
        return self._entries.pop()

    def history(self) -> Iterator[Transaction]:
        """Iterate transactions from most recent to oldest"""
        return reversed(self._entries)

    def replay_balance(self) -> Decimal:
        """
        Recompute the balance by folding entries oldest to newest

        Initial sets the balance, Deposit adds, Withdraw subtracts.
        """
        balance = ZERO
        for transaction in self._entries:
            if transaction.kind == TransactionKind.INITIAL:
                balance = transaction.amount
            else:
                balance += balance_effect(transaction)
        return balance
