from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional

CLIENT_ID_MAX = 2**16 - 1
TRANSACTION_ID_MAX = 2**32 - 1


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"


class TransactionState(Enum):
    NORMAL = "normal"
    DISPUTED = "disputed"
    CHARGED_BACK = "charged_back"


class Outcome(Enum):
    APPLIED = "applied"
    DUPLICATE_TRANSACTION = "duplicate_transaction"
    INVALID_AMOUNT = "invalid_amount"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    ACCOUNT_LOCKED = "account_locked"
    INVALID_DISPUTE = "invalid_dispute"
    INVALID_RESOLVE = "invalid_resolve"
    INVALID_CHARGEBACK = "invalid_chargeback"
    UNKNOWN_TRANSACTION_KIND = "unknown_transaction_kind"
    MALFORMED_RECORD = "malformed_record"


class LockedDisputePolicy(Enum):
    """Whether dispute/resolve/chargeback still apply once an account is locked."""

    ALLOW = "allow"
    REJECT = "reject"


@dataclass(frozen=True)
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass(frozen=True)
class RejectedRecord:
    """An input row the parser could not turn into a Transaction."""

    row: Dict[str, Optional[str]]
    outcome: Outcome
    reason: str


@dataclass
class LedgerEntry:
    """
    A deposit or withdrawal that has been applied to an account.
    The amount is fixed at creation; disputes only move the entry through its states.
    """

    transaction_id: int
    client_id: int
    transaction_type: TransactionType
    amount: Decimal
    state: TransactionState = TransactionState.NORMAL

    @property
    def is_deposit(self) -> bool:
        return self.transaction_type == TransactionType.DEPOSIT


@dataclass
class ClientAccount:
    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    locked: bool = False

    @property
    def total(self) -> Decimal:
        return self.available + self.held

    def credit(self, amount: Decimal) -> None:
        self.available += amount

    def debit(self, amount: Decimal) -> None:
        self.available -= amount

    def hold(self, amount: Decimal) -> None:
        self.available -= amount
        self.held += amount

    def hold_reserved(self, amount: Decimal) -> None:
        # Funds already left available when the withdrawal was applied.
        self.held += amount

    def release_hold(self, amount: Decimal) -> None:
        self.held -= amount
        self.available += amount

    def remove_held(self, amount: Decimal) -> None:
        self.held -= amount

    def lock(self) -> None:
        self.locked = True


@dataclass
class ProcessingStats:
    """Counts of record outcomes for the end-of-run report."""

    outcomes: Counter = field(default_factory=Counter)

    def record(self, outcome: Outcome) -> None:
        self.outcomes[outcome] += 1

    @property
    def applied(self) -> int:
        return self.outcomes[Outcome.APPLIED]

    @property
    def rejected(self) -> int:
        return sum(count for outcome, count in self.outcomes.items() if outcome != Outcome.APPLIED)

    def summary(self) -> str:
        parts = [f"Processed: {self.applied}", f"Rejected: {self.rejected}"]
        for outcome in Outcome:
            if outcome != Outcome.APPLIED and self.outcomes[outcome]:
                parts.append(f"{outcome.value}: {self.outcomes[outcome]}")
        return ", ".join(parts)
