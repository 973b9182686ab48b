"""
CSV boundary of the ledger.

Input rows are turned into Transaction records lazily, one per line, and
rows that cannot be parsed become RejectedRecords so the engine can count
them. Final accounts are rendered back to CSV with fixed decimal precision.
"""

import csv
from decimal import Decimal, InvalidOperation, ROUND_HALF_EVEN, localcontext
from typing import Dict, Iterable, Iterator, Optional, TextIO, Union

from account_store import AccountStore
from models import (
    CLIENT_ID_MAX,
    TRANSACTION_ID_MAX,
    ClientAccount,
    Outcome,
    RejectedRecord,
    Transaction,
    TransactionType,
)

OUTPUT_FIELDS = ["client", "available", "held", "total", "locked"]
DEFAULT_PRECISION = 4

TRANSFER_TYPES = (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


class InputSourceError(Exception):
    """The input could not be opened or read. Nothing meaningful can be produced."""


def read_records(filepath: str) -> Iterator[Union[Transaction, RejectedRecord]]:
    """Yield one record per CSV row, in file order."""
    try:
        with open(filepath, "r", newline="", encoding="utf-8") as f:
            reader = csv.DictReader(f)
            for row in reader:
                yield parse_csv_row(row)
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise InputSourceError(f"Failed to read CSV from {filepath}: {e}") from e


def parse_csv_row(row: Dict[Optional[str], Optional[str]]) -> Union[Transaction, RejectedRecord]:
    """Parse CSV row into Transaction, or a RejectedRecord describing why it can't be."""
    # Short rows leave trailing values as None; long rows collect extras under a None key.
    normalized = {k.strip().lower(): (v or "").strip() for k, v in row.items() if k is not None}

    type_str = normalized.get("type", "").lower()
    if not type_str:
        return RejectedRecord(row=row, outcome=Outcome.MALFORMED_RECORD, reason="missing transaction type")
    try:
        transaction_type = TransactionType(type_str)
    except ValueError:
        return RejectedRecord(
            row=row, outcome=Outcome.UNKNOWN_TRANSACTION_KIND, reason=f"unknown transaction type {type_str!r}"
        )

    client_id = _parse_id(normalized.get("client", ""), CLIENT_ID_MAX)
    if client_id is None:
        return RejectedRecord(row=row, outcome=Outcome.MALFORMED_RECORD, reason="invalid client id")

    transaction_id = _parse_id(normalized.get("tx", ""), TRANSACTION_ID_MAX)
    if transaction_id is None:
        return RejectedRecord(row=row, outcome=Outcome.MALFORMED_RECORD, reason="invalid transaction id")

    amount = None
    amount_str = normalized.get("amount", "")
    if transaction_type in TRANSFER_TYPES and amount_str:
        try:
            amount = Decimal(amount_str)
        except InvalidOperation:
            return RejectedRecord(row=row, outcome=Outcome.INVALID_AMOUNT, reason=f"invalid amount {amount_str!r}")

    return Transaction(
        transaction_type=transaction_type,
        client_id=client_id,
        transaction_id=transaction_id,
        amount=amount,
    )


def _parse_id(value: str, maximum: int) -> Optional[int]:
    try:
        parsed = int(value)
    except ValueError:
        return None
    if parsed < 0 or parsed > maximum:
        return None
    return parsed


def format_amount(value: Decimal, precision: int = DEFAULT_PRECISION) -> str:
    """Format decimal with a fixed number of decimal places."""
    with localcontext() as ctx:
        # quantize fails when integer digits plus decimal places exceed the context precision.
        ctx.prec = max(ctx.prec, value.adjusted() + precision + 2)
        quantized = value.quantize(Decimal(1).scaleb(-precision), rounding=ROUND_HALF_EVEN)
    if quantized.is_zero():
        quantized = abs(quantized)
    return f"{quantized:f}"


def account_row(account: ClientAccount, precision: int = DEFAULT_PRECISION) -> Dict[str, str]:
    available = Decimal(format_amount(account.available, precision))
    held = Decimal(format_amount(account.held, precision))
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, max(available.adjusted(), held.adjusted()) + precision + 2)
        total = available + held
    return {
        "client": str(account.client_id),
        "available": format_amount(available, precision),
        "held": format_amount(held, precision),
        # Summed after rounding so the row always adds up.
        "total": format_amount(total, precision),
        "locked": str(account.locked).lower(),
    }


def account_rows(accounts: AccountStore, precision: int = DEFAULT_PRECISION) -> Iterator[Dict[str, str]]:
    """One output row per client, by ascending client id."""
    for account in accounts.sorted_accounts():
        yield account_row(account, precision)


def write_accounts(rows: Iterable[Dict[str, str]], stream: TextIO) -> None:
    writer = csv.DictWriter(stream, fieldnames=OUTPUT_FIELDS, lineterminator="\n")
    writer.writeheader()
    for row in rows:
        writer.writerow(row)
