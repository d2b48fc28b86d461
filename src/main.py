import csv
import sys
import logging

from models import TransactionParseError
from payments_engine import PaymentsEngine

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(levelname)s: %(message)s"


def run(filepath: str) -> None:
    engine = PaymentsEngine()
    accounts = engine.process_file(filepath)
    engine.write_accounts(accounts, sys.stdout)


def main(argv=None):
    logging.basicConfig(
        level=logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )

    args = sys.argv[1:] if argv is None else argv
    if len(args) != 1:
        print("Usage: payments-engine <transactions.csv> > accounts.csv", file=sys.stderr)
        sys.exit(1)

    try:
        run(args[0])
    except (TransactionParseError, csv.Error, OSError) as e:
        logger.error(f"error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
