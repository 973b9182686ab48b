import sys
import os
from decimal import Decimal

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from account_store import AccountStore
from models import Transaction, TransactionState, TransactionType
from transaction_ledger import TransactionLedger


class TestAccountStore:
    def test_get_or_create_returns_same_account(self):
        store = AccountStore()
        first = store.get_or_create_account(3)
        first.credit(Decimal("10"))

        assert store.get_or_create_account(3) is first
        assert len(store) == 1

    def test_get_account_does_not_create(self):
        store = AccountStore()
        assert store.get_account(1) is None
        assert 1 not in store

    def test_sorted_accounts(self):
        store = AccountStore()
        for client_id in (5, 2, 9):
            store.get_or_create_account(client_id)

        assert [account.client_id for account in store.sorted_accounts()] == [2, 5, 9]


class TestTransactionLedger:
    def test_record_and_lookup(self):
        ledger = TransactionLedger()
        ledger.record(Transaction(TransactionType.DEPOSIT, client_id=1, transaction_id=10, amount=Decimal("2.5")))

        entry = ledger.get_entry(10)
        assert entry.client_id == 1
        assert entry.amount == Decimal("2.5")
        assert entry.state == TransactionState.NORMAL
        assert ledger.contains(10)
        assert ledger.get_entry(11) is None

    def test_record_never_overwrites(self):
        ledger = TransactionLedger()
        ledger.record(Transaction(TransactionType.DEPOSIT, client_id=1, transaction_id=10, amount=Decimal("1")))

        with pytest.raises(ValueError):
            ledger.record(Transaction(TransactionType.WITHDRAWAL, client_id=1, transaction_id=10, amount=Decimal("1")))

        assert ledger.get_entry(10).transaction_type == TransactionType.DEPOSIT
        assert len(ledger) == 1

    def test_disputed_entries(self):
        ledger = TransactionLedger()
        for transaction_id in (1, 2, 3):
            ledger.record(Transaction(TransactionType.DEPOSIT, client_id=1, transaction_id=transaction_id, amount=Decimal("1")))
        ledger.get_entry(2).state = TransactionState.DISPUTED

        assert [entry.transaction_id for entry in ledger.disputed_entries()] == [2]
