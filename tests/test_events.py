"""
Tests for the domain event dispatcher and registry event publishing
"""

import pytest
from decimal import Decimal

from bank_core.accounts import AccountRegistry
from bank_core.config import BankConfig
from bank_core.errors import InsufficientFunds
from bank_core.events import DomainEvent, EventDispatcher, EventPayload


class TestEventDispatcher:
    """Test publish/subscribe mechanics"""
    
    def setup_method(self):
        self.dispatcher = EventDispatcher()
        self.received = []
    
    def _handler(self, event):
        self.received.append(event)
    
    def test_subscribe_and_publish(self):
        self.dispatcher.subscribe(DomainEvent.ACCOUNT_CREATED, self._handler)
        event = EventPayload(event_type=DomainEvent.ACCOUNT_CREATED, entity_id=1, data={})
        
        self.dispatcher.publish(event)
        self.dispatcher.publish(
            EventPayload(event_type=DomainEvent.ACCOUNT_DELETED, entity_id=1, data={})
        )
        
        assert self.received == [event]
    
    def test_global_handler_receives_everything(self):
        self.dispatcher.subscribe_all(self._handler)
        
        for event_type in DomainEvent:
            self.dispatcher.publish(EventPayload(event_type=event_type, entity_id=1, data={}))
        
        assert len(self.received) == len(DomainEvent)
    
    def test_unsubscribe(self):
        self.dispatcher.subscribe(DomainEvent.ACCOUNT_CREATED, self._handler)
        self.dispatcher.unsubscribe(DomainEvent.ACCOUNT_CREATED, self._handler)
        # Unsubscribing twice is tolerated
        self.dispatcher.unsubscribe(DomainEvent.ACCOUNT_CREATED, self._handler)
        
        self.dispatcher.publish(
            EventPayload(event_type=DomainEvent.ACCOUNT_CREATED, entity_id=1, data={})
        )
        
        assert self.received == []
        assert self.dispatcher.get_handler_count() == 0
    
    def test_failing_handler_is_isolated(self):
        """Test that one broken handler does not stop the others"""
        def broken(event):
            raise RuntimeError("boom")
        
        self.dispatcher.subscribe(DomainEvent.DEPOSIT_APPLIED, broken)
        self.dispatcher.subscribe(DomainEvent.DEPOSIT_APPLIED, self._handler)
        
        self.dispatcher.publish(
            EventPayload(event_type=DomainEvent.DEPOSIT_APPLIED, entity_id=1, data={})
        )
        
        assert len(self.received) == 1
    
    def test_clear(self):
        self.dispatcher.subscribe(DomainEvent.ACCOUNT_CREATED, self._handler)
        self.dispatcher.subscribe_all(self._handler)
        assert self.dispatcher.get_handler_count() == 2
        assert self.dispatcher.get_handler_count(DomainEvent.ACCOUNT_CREATED) == 1
        
        self.dispatcher.clear()
        
        assert self.dispatcher.get_handler_count() == 0
    
    def test_payload_to_dict(self):
        event = EventPayload(
            event_type=DomainEvent.TRANSACTION_UNDONE, entity_id=3, data={"kind": "Deposit"}
        )
        
        result = event.to_dict()
        
        assert result["event_type"] == "ledger.transaction_undone"
        assert result["entity_id"] == 3
        assert result["data"] == {"kind": "Deposit"}
        assert result["event_id"] == event.event_id


class TestRegistryEvents:
    """Test events published by AccountRegistry"""
    
    def setup_method(self):
        self.dispatcher = EventDispatcher()
        self.received = []
        self.dispatcher.subscribe_all(self.received.append)
        self.registry = AccountRegistry(config=BankConfig(), event_dispatcher=self.dispatcher)
    
    def test_events_follow_mutations(self):
        self.registry.create_account(1, "Alice", 100)
        self.registry.deposit(1, 50)
        self.registry.withdraw(1, 20)
        self.registry.undo(1)
        self.registry.delete(1)
        
        assert [e.event_type for e in self.received] == [
            DomainEvent.ACCOUNT_CREATED,
            DomainEvent.DEPOSIT_APPLIED,
            DomainEvent.WITHDRAWAL_APPLIED,
            DomainEvent.TRANSACTION_UNDONE,
            DomainEvent.ACCOUNT_DELETED,
        ]
        assert self.received[3].data == {"kind": "Withdraw", "amount": "20.00", "balance": "150.00"}
    
    def test_rejected_operation_publishes_nothing(self):
        self.registry.create_account(1, "Alice", 100)
        self.received.clear()
        
        with pytest.raises(InsufficientFunds):
            self.registry.withdraw(1, 1000)
        
        assert self.received == []
    
    def test_handler_failure_does_not_roll_back(self):
        """Test that the committed deposit survives a broken subscriber"""
        def broken(event):
            raise RuntimeError("subscriber down")
        
        self.dispatcher.subscribe(DomainEvent.DEPOSIT_APPLIED, broken)
        self.registry.create_account(1, "Alice", 100)
        
        assert self.registry.deposit(1, 10) == Decimal('110.00')
        assert self.registry.find(1).is_consistent()
    
    def test_events_disabled_by_config(self):
        registry = AccountRegistry(
            config=BankConfig(enable_events=False), event_dispatcher=self.dispatcher
        )
        
        registry.create_account(1, "Alice", 100)
        
        assert self.received == []
