import logging
from decimal import Decimal
from typing import Iterable, Optional, Union

from account_store import AccountStore
from models import (
    ClientAccount,
    LockedDisputePolicy,
    Outcome,
    ProcessingStats,
    RejectedRecord,
    Transaction,
    TransactionState,
    TransactionType,
)
from transaction_ledger import TransactionLedger

logger = logging.getLogger(__name__)

Record = Union[Transaction, RejectedRecord]


class LedgerState:
    """Accounts and transaction history for one run, owned by a single engine."""

    def __init__(self):
        self.accounts = AccountStore()
        self.transactions = TransactionLedger()


class LedgerEngine:
    """
    Applies records one at a time, in arrival order, against a LedgerState.

    Every record yields an Outcome. Rejected records leave state untouched and
    processing continues with the next record.
    """

    def __init__(
        self,
        state: Optional[LedgerState] = None,
        locked_dispute_policy: LockedDisputePolicy = LockedDisputePolicy.ALLOW,
    ):
        self._state = state if state is not None else LedgerState()
        self._locked_dispute_policy = locked_dispute_policy
        self._stats = ProcessingStats()

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process(self, records: Iterable[Record]) -> AccountStore:
        """Apply every record in order and return the final accounts."""
        for record in records:
            self.apply(record)

        open_disputes = self._state.transactions.disputed_entries()
        if open_disputes:
            logger.info(f"{len(open_disputes)} disputes still open at end of input")

        return self._state.accounts

    def apply(self, record: Record) -> Outcome:
        """
        Apply a single record.

        Returns:
            APPLIED: State was updated
            anything else: The record was rejected and state is unchanged
        """
        if isinstance(record, RejectedRecord):
            logger.warning(f"Skipping row {record.row}: {record.reason}")
            outcome = record.outcome
        else:
            outcome = self._apply_transaction(record)

        self._stats.record(outcome)
        return outcome

    def _apply_transaction(self, transaction: Transaction) -> Outcome:
        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                return self._handle_deposit(transaction)
            case TransactionType.WITHDRAWAL:
                return self._handle_withdrawal(transaction)
            case TransactionType.DISPUTE:
                return self._handle_dispute(transaction)
            case TransactionType.RESOLVE:
                return self._handle_resolve(transaction)
            case TransactionType.CHARGEBACK:
                return self._handle_chargeback(transaction)
            case _:
                return Outcome.UNKNOWN_TRANSACTION_KIND

    def _check_new_transfer(self, transaction: Transaction) -> Optional[Outcome]:
        label = transaction.transaction_type.value.capitalize()

        if self._state.transactions.contains(transaction.transaction_id):
            logger.warning(f"{label} tx {transaction.transaction_id}: transaction id already used, rejecting duplicate")
            return Outcome.DUPLICATE_TRANSACTION

        if not _is_valid_amount(transaction.amount):
            logger.warning(f"{label} tx {transaction.transaction_id}: invalid amount {transaction.amount}")
            return Outcome.INVALID_AMOUNT

        return None

    def _handle_deposit(self, transaction: Transaction) -> Outcome:
        rejection = self._check_new_transfer(transaction)
        if rejection is not None:
            return rejection

        account = self._state.accounts.get_or_create_account(transaction.client_id)
        if account.locked:
            logger.warning(f"Deposit tx {transaction.transaction_id}: client {account.client_id} is locked")
            return Outcome.ACCOUNT_LOCKED

        account.credit(transaction.amount)
        self._state.transactions.record(transaction)
        return Outcome.APPLIED

    def _handle_withdrawal(self, transaction: Transaction) -> Outcome:
        rejection = self._check_new_transfer(transaction)
        if rejection is not None:
            return rejection

        account = self._state.accounts.get_or_create_account(transaction.client_id)
        if account.locked:
            logger.warning(f"Withdrawal tx {transaction.transaction_id}: client {account.client_id} is locked")
            return Outcome.ACCOUNT_LOCKED

        if account.available < transaction.amount:
            logger.warning(
                f"Withdrawal tx {transaction.transaction_id}: insufficient funds "
                f"(available {account.available}, requested {transaction.amount})"
            )
            return Outcome.INSUFFICIENT_FUNDS

        account.debit(transaction.amount)
        self._state.transactions.record(transaction)
        return Outcome.APPLIED

    def _find_disputable(self, transaction: Transaction):
        """
        Look up the referenced entry and its owning account.
        Returns (entry, account), or (None, None) when the reference is unusable.
        """
        label = transaction.transaction_type.value.capitalize()
        entry = self._state.transactions.get_entry(transaction.transaction_id)

        if entry is None:
            logger.info(f"{label} for tx {transaction.transaction_id}: transaction not found")
            return None, None

        if entry.client_id != transaction.client_id:
            logger.warning(
                f"{label} for tx {transaction.transaction_id}: client mismatch "
                f"(expected {entry.client_id}, got {transaction.client_id})"
            )
            return None, None

        return entry, self._state.accounts.get_account(entry.client_id)

    def _blocked_by_lock(self, account: ClientAccount, transaction: Transaction) -> bool:
        if account.locked and self._locked_dispute_policy == LockedDisputePolicy.REJECT:
            logger.warning(
                f"{transaction.transaction_type.value.capitalize()} for tx {transaction.transaction_id}: "
                f"client {account.client_id} is locked"
            )
            return True
        return False

    def _handle_dispute(self, transaction: Transaction) -> Outcome:
        entry, account = self._find_disputable(transaction)
        if entry is None:
            return Outcome.INVALID_DISPUTE
        if self._blocked_by_lock(account, transaction):
            return Outcome.ACCOUNT_LOCKED

        match entry.state:
            case TransactionState.DISPUTED:
                logger.info(f"Dispute for tx {entry.transaction_id}: transaction already disputed")
                return Outcome.INVALID_DISPUTE
            case TransactionState.CHARGED_BACK:
                logger.info(f"Dispute for tx {entry.transaction_id}: transaction already charged back")
                return Outcome.INVALID_DISPUTE

        if entry.is_deposit:
            # A deposit can only be disputed while the client still holds the funds.
            if account.available < entry.amount:
                logger.warning(
                    f"Dispute for tx {entry.transaction_id}: insufficient funds "
                    f"(available {account.available}, disputed {entry.amount})"
                )
                return Outcome.INSUFFICIENT_FUNDS
            account.hold(entry.amount)
        else:
            account.hold_reserved(entry.amount)

        entry.state = TransactionState.DISPUTED
        return Outcome.APPLIED

    def _handle_resolve(self, transaction: Transaction) -> Outcome:
        entry, account = self._find_disputable(transaction)
        if entry is None:
            return Outcome.INVALID_RESOLVE
        if self._blocked_by_lock(account, transaction):
            return Outcome.ACCOUNT_LOCKED

        if entry.state != TransactionState.DISPUTED:
            logger.info(f"Resolve for tx {entry.transaction_id}: transaction is {entry.state.value}, not disputed")
            return Outcome.INVALID_RESOLVE

        # For a withdrawal this returns the reserved amount to the client.
        account.release_hold(entry.amount)
        entry.state = TransactionState.NORMAL
        return Outcome.APPLIED

    def _handle_chargeback(self, transaction: Transaction) -> Outcome:
        entry, account = self._find_disputable(transaction)
        if entry is None:
            return Outcome.INVALID_CHARGEBACK
        if self._blocked_by_lock(account, transaction):
            return Outcome.ACCOUNT_LOCKED

        if entry.state != TransactionState.DISPUTED:
            logger.info(f"Chargeback for tx {entry.transaction_id}: transaction is {entry.state.value}, not disputed")
            return Outcome.INVALID_CHARGEBACK

        if not entry.is_deposit:
            logger.warning(f"Chargeback for tx {entry.transaction_id}: only deposits can be charged back")
            return Outcome.INVALID_CHARGEBACK

        account.remove_held(entry.amount)
        account.lock()
        entry.state = TransactionState.CHARGED_BACK
        return Outcome.APPLIED


def _is_valid_amount(amount: Optional[Decimal]) -> bool:
    return amount is not None and amount.is_finite() and amount >= 0
