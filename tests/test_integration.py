"""
End-to-end scenario for a single account session

Walks through the opening deposit, a deposit, a rejected overdraft, a
withdrawal and a chain of undos, checking balance and history at each step.
"""

import pytest
from decimal import Decimal

from bank_core import (
    AccountRegistry, AccountSummary, TransactionKind, UndoSummary,
    InsufficientFunds, NothingToUndo, NotFound
)
from bank_core.config import BankConfig
from bank_core.events import EventDispatcher


def history(registry, account_id):
    return [(t.kind, t.amount) for t in registry.get_history(account_id)]


class TestAccountSession:
    """Full session against one registry"""
    
    def setup_method(self):
        self.dispatcher = EventDispatcher()
        self.events = []
        self.dispatcher.subscribe_all(self.events.append)
        self.registry = AccountRegistry(config=BankConfig(), event_dispatcher=self.dispatcher)
    
    def test_session(self):
        # 1. open
        summary = self.registry.create_account(1, "Alice", 100.0)
        assert summary == AccountSummary(id=1, name="Alice", balance=Decimal('100.00'))
        assert history(self.registry, 1) == [(TransactionKind.INITIAL, Decimal('100.00'))]
        
        # 2. deposit
        assert self.registry.deposit(1, 50.0) == Decimal('150.00')
        assert history(self.registry, 1) == [
            (TransactionKind.DEPOSIT, Decimal('50.00')),
            (TransactionKind.INITIAL, Decimal('100.00')),
        ]
        
        # 3. overdraft rejected
        with pytest.raises(InsufficientFunds):
            self.registry.withdraw(1, 200.0)
        assert self.registry.find(1).balance == Decimal('150.00')
        
        # 4. withdraw
        assert self.registry.withdraw(1, 50.0) == Decimal('100.00')
        
        # 5. undo the withdrawal
        assert self.registry.undo(1) == UndoSummary(
            kind=TransactionKind.WITHDRAW, amount=Decimal('50.00'), new_balance=Decimal('150.00')
        )
        assert history(self.registry, 1) == [
            (TransactionKind.DEPOSIT, Decimal('50.00')),
            (TransactionKind.INITIAL, Decimal('100.00')),
        ]
        
        # 6. undo the deposit, then nothing is left to undo
        assert self.registry.undo(1).new_balance == Decimal('100.00')
        with pytest.raises(NothingToUndo):
            self.registry.undo(1)
        assert self.registry.find(1).balance == Decimal('100.00')
        assert len(self.registry.find(1).ledger) == 1
        
        assert len(self.events) == 5
    
    def test_multiple_accounts_are_independent(self):
        self.registry.create_account(1, "Alice", 100)
        self.registry.create_account(2, "Bob", 20)
        
        self.registry.deposit(1, 10)
        self.registry.withdraw(2, 5)
        self.registry.undo(1)
        
        assert [s.balance for s in self.registry.list_accounts()] == [
            Decimal('15.00'), Decimal('100.00')
        ]
        
        self.registry.delete(2)
        with pytest.raises(NotFound):
            self.registry.get_history(2)
        with pytest.raises(NothingToUndo):
            self.registry.undo(1)
        assert [s.id for s in self.registry.list_accounts()] == [1]
