from typing import Dict, List, Optional

from models import LedgerEntry, Transaction, TransactionState


class TransactionLedger:
    """
    Applied deposits and withdrawals keyed by transaction id.
    Entries are kept for the whole run so late disputes and replays can be checked.
    """

    def __init__(self):
        self._entries: Dict[int, LedgerEntry] = {}

    def record(self, transaction: Transaction) -> LedgerEntry:
        """
        Store an applied deposit or withdrawal for future dispute lookups.
        Caller must check `contains` first; an existing entry is never overwritten.
        """
        if transaction.transaction_id in self._entries:
            raise ValueError(f"transaction {transaction.transaction_id} already recorded")

        entry = LedgerEntry(
            transaction_id=transaction.transaction_id,
            client_id=transaction.client_id,
            transaction_type=transaction.transaction_type,
            amount=transaction.amount,
        )
        self._entries[transaction.transaction_id] = entry
        return entry

    def get_entry(self, transaction_id: int) -> Optional[LedgerEntry]:
        """Retrieve stored transaction by ID."""
        return self._entries.get(transaction_id)

    def contains(self, transaction_id: int) -> bool:
        return transaction_id in self._entries

    def disputed_entries(self) -> List[LedgerEntry]:
        return [entry for entry in self._entries.values() if entry.state == TransactionState.DISPUTED]

    def __len__(self) -> int:
        return len(self._entries)
