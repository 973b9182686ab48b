import sys
import logging
from typing import List, Optional

from pydantic import ValidationError

from ledger_engine import LedgerEngine
from records import InputSourceError, account_rows, read_records, write_accounts
from settings import LedgerSettings

logger = logging.getLogger(__name__)


def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 1:
        print("Usage: python main.py <input.csv>", file=sys.stderr)
        return 1

    try:
        settings = LedgerSettings()
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    filepath = argv[0]
    engine = LedgerEngine(locked_dispute_policy=settings.LOCKED_DISPUTE_POLICY)
    try:
        accounts = engine.process(read_records(filepath))
    except InputSourceError as e:
        logger.error(str(e))
        return 1

    # Rows are rendered before anything is written so stdout never holds a partial CSV.
    rows = list(account_rows(accounts, settings.OUTPUT_PRECISION))
    write_accounts(rows, sys.stdout)

    if settings.REPORT:
        print(engine.stats.summary(), file=sys.stderr)

    return 0


if __name__ == "__main__":
    sys.exit(main())
