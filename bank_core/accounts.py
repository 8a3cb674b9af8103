"""
Account Registry Module

Owns every account and its ledger. All balance mutation goes through the
registry, which validates first and then updates ledger and cached balance
together, so a rejected request never leaves partial state behind.
"""

from decimal import Decimal
from datetime import datetime, timezone
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional
from threading import RLock
import logging

from .amounts import AmountLike, exact_sum, format_amount, require_non_negative, require_positive, to_amount
from .config import BankConfig, get_config
from .errors import DuplicateId, InsufficientFunds, NotFound, NothingToUndo
from .events import DomainEvent, EventDispatcher, EventPayload
from .ledger import Ledger, Transaction, TransactionKind, reversal_effect
from .logging_config import get_logger, log_action


@dataclass(frozen=True)
class AccountSummary:
    """Read-only view of an account for reporting"""
    id: int
    name: str
    balance: Decimal


@dataclass(frozen=True)
class TransactionSummary:
    """Read-only view of a ledger entry"""
    kind: TransactionKind
    amount: Decimal
    created_at: datetime

    @classmethod
    def from_transaction(cls, transaction: Transaction) -> 'TransactionSummary':
        return cls(
            kind=transaction.kind,
            amount=transaction.amount,
            created_at=transaction.created_at
        )


@dataclass(frozen=True)
class UndoSummary:
    """Result of undoing the most recent transaction"""
    kind: TransactionKind
    amount: Decimal
    new_balance: Decimal


@dataclass
class Account:
    """
    Bank account with a cached balance and its own ledger

    The balance always equals ledger.replay_balance(). Only the registry
    mutates it.
    """
    id: int
    name: str
    balance: Decimal
    ledger: Ledger = field(default_factory=Ledger, repr=False)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    lock: RLock = field(default_factory=RLock, repr=False, compare=False)

    def summary(self) -> AccountSummary:
        return AccountSummary(id=self.id, name=self.name, balance=self.balance)

    def is_consistent(self) -> bool:
        """Check the cached balance against a replay of the ledger"""
        return self.balance == self.ledger.replay_balance()


class AccountRegistry:
    """
    Manages account lifecycle and balance mutation

    Structural changes (create, delete) hold the registry lock; balance
    changes (deposit, withdraw, undo) hold the addressed account's lock.

    Log records go to the "bank_core.accounts" logger; call
    logging_config.setup_logging_from_config() once at startup to route
    them according to the BANK_LOG_* settings.
    """

    def __init__(
        self,
        config: Optional[BankConfig] = None,
        event_dispatcher: Optional[EventDispatcher] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.config = config or get_config()
        self.logger = logger or get_logger("bank_core.accounts")
        self._accounts: Dict[int, Account] = {}
        self._lock = RLock()
        self._event_dispatcher = event_dispatcher

    def __len__(self) -> int:
        return len(self._accounts)

    def __contains__(self, account_id: int) -> bool:
        return account_id in self._accounts

    def _amount(self, value: AmountLike) -> Decimal:
        return to_amount(value, self.config.amount_precision)

    def _format(self, amount: Decimal) -> str:
        return format_amount(amount, self.config.amount_precision)

    def _publish_event(self, event_type: DomainEvent, account_id: int, **data) -> None:
        """Publish a domain event if event dispatcher is available"""
        if self._event_dispatcher is None or not self.config.enable_events:
            return
        self._event_dispatcher.publish(
            EventPayload(event_type=event_type, entity_id=account_id, data=data)
        )

    def _reject(self, action: str, account_id: int, error: Exception) -> None:
        log_action(
            self.logger, "warning", str(error),
            action=action, resource=f"account:{account_id}",
            extra={"error": type(error).__name__}
        )

    def create_account(self, account_id: int, name: str, initial_amount: AmountLike) -> AccountSummary:
        """
        Create a new account seeded with an Initial ledger entry

        Args:
            account_id: Caller-assigned unique account number
            name: Display name
            initial_amount: Opening deposit, may be zero

        Returns:
            AccountSummary of the new account

        Raises:
            InvalidAmount: If the opening deposit is negative or not a number
            DuplicateId: If the account id is already registered
        """
        try:
            amount = require_non_negative(self._amount(initial_amount))
            with self._lock:
                if account_id in self._accounts:
                    raise DuplicateId(account_id)

                account = Account(id=account_id, name=name, balance=amount)
                account.ledger.append(TransactionKind.INITIAL, amount)
                self._accounts[account_id] = account
        except ValueError as e:
            self._reject("account_created", account_id, e)
            raise

        log_action(
            self.logger, "info", f"Account {account_id} created",
            action="account_created", resource=f"account:{account_id}",
            extra={"name": name, "initial_amount": str(amount)}
        )
        self._publish_event(
            DomainEvent.ACCOUNT_CREATED, account_id,
            name=name, initial_amount=str(amount)
        )
        return account.summary()

    def find(self, account_id: int) -> Account:
        """
        Get account by id

        Raises:
            NotFound: If no account has this id
        """
        account = self._accounts.get(account_id)
        if account is None:
            raise NotFound(account_id)
        return account

    def deposit(self, account_id: int, amount: AmountLike) -> Decimal:
        """
        Add funds to an account

        Returns:
            New balance

        Raises:
            NotFound: If the account does not exist
            InvalidAmount: If amount is not positive, or the new balance
                cannot be held exactly
        """
        try:
            account = self.find(account_id)
            value = require_positive(self._amount(amount))
            with account.lock:
                new_balance = exact_sum(account.balance, value)
                account.ledger.append(TransactionKind.DEPOSIT, value)
                account.balance = new_balance
        except ValueError as e:
            self._reject("deposit", account_id, e)
            raise

        log_action(
            self.logger, "info",
            f"Deposit of {self._format(value)} to account {account_id}, new balance {self._format(new_balance)}",
            action="deposit", resource=f"account:{account_id}",
            extra={"amount": str(value), "balance": str(new_balance)}
        )
        self._publish_event(
            DomainEvent.DEPOSIT_APPLIED, account_id,
            amount=str(value), balance=str(new_balance)
        )
        return new_balance

    def withdraw(self, account_id: int, amount: AmountLike) -> Decimal:
        """
        Remove funds from an account, never below zero

        Returns:
            New balance

        Raises:
            NotFound: If the account does not exist
            InvalidAmount: If amount is not positive, or the new balance
                cannot be held exactly
            InsufficientFunds: If amount exceeds the balance
        """
        try:
            account = self.find(account_id)
            value = require_positive(self._amount(amount))
            with account.lock:
                if value > account.balance:
                    raise InsufficientFunds(account_id, account.balance, value)
                new_balance = exact_sum(account.balance, -value)
                account.ledger.append(TransactionKind.WITHDRAW, value)
                account.balance = new_balance
        except ValueError as e:
            self._reject("withdraw", account_id, e)
            raise

        log_action(
            self.logger, "info",
            f"Withdrawal of {self._format(value)} from account {account_id}, new balance {self._format(new_balance)}",
            action="withdraw", resource=f"account:{account_id}",
            extra={"amount": str(value), "balance": str(new_balance)}
        )
        self._publish_event(
            DomainEvent.WITHDRAWAL_APPLIED, account_id,
            amount=str(value), balance=str(new_balance)
        )
        return new_balance

    def undo(self, account_id: int) -> UndoSummary:
        """
        Reverse the most recent Deposit or Withdraw on an account

        Returns:
            UndoSummary with the undone kind, amount and the restored balance

        Raises:
            NotFound: If the account does not exist
            NothingToUndo: If only the Initial entry remains
        """
        try:
            account = self.find(account_id)
            with account.lock:
                if not account.ledger.can_undo:
                    raise NothingToUndo(account_id)
                new_balance = exact_sum(account.balance, reversal_effect(account.ledger.top))
                transaction = account.ledger.undo_last()
                account.balance = new_balance
        except ValueError as e:
            self._reject("undo", account_id, e)
            raise

        log_action(
            self.logger, "info",
            f"Undone {transaction.kind.value} of {self._format(transaction.amount)} on account {account_id}, "
            f"new balance {self._format(new_balance)}",
            action="undo", resource=f"account:{account_id}",
            extra={
                "kind": transaction.kind.value,
                "amount": str(transaction.amount),
                "balance": str(new_balance)
            }
        )
        self._publish_event(
            DomainEvent.TRANSACTION_UNDONE, account_id,
            kind=transaction.kind.value, amount=str(transaction.amount), balance=str(new_balance)
        )
        return UndoSummary(kind=transaction.kind, amount=transaction.amount, new_balance=new_balance)

    def delete(self, account_id: int) -> None:
        """
        Remove an account together with its ledger

        Raises:
            NotFound: If the account does not exist
        """
        with self._lock:
            account = self._accounts.pop(account_id, None)
        if account is None:
            error = NotFound(account_id)
            self._reject("account_deleted", account_id, error)
            raise error

        log_action(
            self.logger, "info", f"Account {account_id} deleted",
            action="account_deleted", resource=f"account:{account_id}",
            extra={"balance": str(account.balance), "transactions": len(account.ledger)}
        )
        self._publish_event(
            DomainEvent.ACCOUNT_DELETED, account_id,
            balance=str(account.balance)
        )

    def list_accounts(self) -> Iterator[AccountSummary]:
        """
        Iterate account summaries, most recently created first

        The summaries are a snapshot taken when this is called.
        """
        with self._lock:
            accounts: List[Account] = list(self._accounts.values())
        return iter([account.summary() for account in reversed(accounts)])

    def get_history(self, account_id: int) -> Iterator[TransactionSummary]:
        """
        Iterate an account's transactions, most recent first

        Raises:
            NotFound: Immediately, if the account does not exist
        """
        account = self.find(account_id)
        with account.lock:
            transactions = list(account.ledger.history())
        return iter([TransactionSummary.from_transaction(t) for t in transactions])
