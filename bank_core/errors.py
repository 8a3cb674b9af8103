"""
Error Taxonomy

Every failure the core can report. All of them are recoverable: the caller
reports the message and carries on. They derive from ValueError so callers
that only care about "the request was rejected" can catch that.
"""

from decimal import Decimal
from typing import Any, Optional


class BankingError(ValueError):
    """Base class for all rejected banking operations"""


class DuplicateId(BankingError):
    """Account creation requested for an id already present"""

    def __init__(self, account_id: int):
        self.account_id = account_id
        super().__init__(f"Account {account_id} already exists")


class NotFound(BankingError):
    """Operation addressed an account id absent from the registry"""

    def __init__(self, account_id: int):
        self.account_id = account_id
        super().__init__(f"Account {account_id} not found")


class InvalidAmount(BankingError):
    """Amount is negative, non-numeric, or zero where a positive one is required"""

    def __init__(self, amount: Any, reason: str = "Amount must be positive"):
        self.amount = amount
        super().__init__(f"{reason}: {amount}")


class InsufficientFunds(BankingError):
    """Withdrawal would drive the balance negative"""

    def __init__(self, account_id: int, balance: Decimal, amount: Decimal):
        self.account_id = account_id
        self.balance = balance
        self.amount = amount
        super().__init__(
            f"Insufficient funds in account {account_id}: "
            f"balance={balance}, requested={amount}"
        )


class NothingToUndo(BankingError):
    """Undo requested with only the opening entry left"""

    def __init__(self, account_id: Optional[int] = None):
        self.account_id = account_id
        message = "Nothing to undo (initial deposit cannot be undone)"
        if account_id is not None:
            message = f"{message} for account {account_id}"
        super().__init__(message)


class InvalidOperation(BankingError):
    """Structural misuse of a ledger, e.g. a second Initial entry"""
