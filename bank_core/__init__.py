"""
Undoable Account Ledger Core

An in-memory account registry where every account keeps a cached balance
and a stack of balance-affecting transactions that can be undone one at a
time. All amounts are handled as Decimal.
"""

from .errors import (
    BankingError, DuplicateId, NotFound, InvalidAmount,
    InsufficientFunds, NothingToUndo, InvalidOperation
)
from .ledger import TransactionKind, Transaction, Ledger
from .accounts import (
    Account, AccountSummary, TransactionSummary, UndoSummary, AccountRegistry
)

__version__ = "1.0.0"

__all__ = [
    "BankingError", "DuplicateId", "NotFound", "InvalidAmount",
    "InsufficientFunds", "NothingToUndo", "InvalidOperation",
    "TransactionKind", "Transaction", "Ledger",
    "Account", "AccountSummary", "TransactionSummary", "UndoSummary",
    "AccountRegistry",
]
