import csv
import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, Iterator, List, Optional, TextIO

from account_state import ClientAccountState
from models import TransactionRecord, TransactionType, TransactionParseError, ProcessingStats
from precision import MAX_INTEGER_DIGITS, fits, format_amount
from state_manager import StateManager
from transaction_processor import TransactionProcessor

logger = logging.getLogger(__name__)

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1

REQUIRED_COLUMNS = ("type", "client", "tx")
AMOUNT_COLUMN = "amount"
OUTPUT_COLUMNS = ["client", "available", "held", "total", "locked"]


class PaymentsEngine:
    """
    Single-pass driver: parses the CSV log, feeds every record to the
    processor in input order and renders the final account states.
    Malformed input raises TransactionParseError and aborts the run.
    """

    def __init__(self):
        self._state = StateManager()
        self._stats = ProcessingStats()
        self._processor = TransactionProcessor(self._state, self._stats)

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process_file(self, filepath: str) -> Dict[int, ClientAccountState]:
        """Process CSV file and return final account states."""
        logger.info(f"Processing {filepath}")
        with open(filepath, "r", newline="") as f:
            self.process_records(self.read_records(f))
        return self._state.get_all_accounts()

    def process_records(self, records: Iterable[TransactionRecord]) -> Dict[int, ClientAccountState]:
        for record in records:
            self._processor.process_transaction(record)

        logger.info(f"Processing complete. {self._stats}")
        return self._state.get_all_accounts()

    def read_records(self, stream: TextIO) -> Iterator[TransactionRecord]:
        """Parse CSV rows lazily, so records are applied as they are read."""
        reader = csv.reader(stream)
        try:
            header = [column.strip() for column in next(reader)]
        except StopIteration:
            raise TransactionParseError("input is empty, expected a header row") from None

        missing = [column for column in REQUIRED_COLUMNS if column not in header]
        if missing:
            raise TransactionParseError(f"header is missing column(s): {', '.join(missing)}", 1)

        for row in reader:
            if not row:
                continue
            yield self.parse_row(header, row, reader.line_num)

    def parse_row(self, header: List[str], row: List[str], line_number: Optional[int] = None) -> TransactionRecord:
        """Parse CSV row into TransactionRecord."""
        if len(row) != len(header):
            raise TransactionParseError(
                f"expected {len(header)} fields, found {len(row)}: {row!r}", line_number
            )
        normalized = {column: value.strip() for column, value in zip(header, row)}

        try:
            transaction_type = TransactionType.parse(normalized["type"])
        except TransactionParseError as e:
            raise TransactionParseError(str(e), line_number) from None

        client_id = self._parse_id(normalized["client"], "client", MAX_CLIENT_ID, line_number)
        transaction_id = self._parse_id(normalized["tx"], "tx", MAX_TRANSACTION_ID, line_number)

        amount = None
        amount_str = normalized.get(AMOUNT_COLUMN, "")
        if amount_str:
            amount = self._parse_amount(amount_str, line_number)

        return TransactionRecord(
            transaction_type=transaction_type,
            client_id=client_id,
            transaction_id=transaction_id,
            amount=amount,
        )

    @staticmethod
    def _parse_id(value: str, column: str, upper_bound: int, line_number: Optional[int]) -> int:
        try:
            parsed = int(value)
        except ValueError:
            raise TransactionParseError(f"invalid {column} id {value!r}", line_number) from None
        if not 0 <= parsed <= upper_bound:
            raise TransactionParseError(f"{column} id {parsed} out of range 0..{upper_bound}", line_number)
        return parsed

    @staticmethod
    def _parse_amount(value: str, line_number: Optional[int]) -> Decimal:
        try:
            amount = Decimal(value)
        except InvalidOperation:
            raise TransactionParseError(f"invalid amount {value!r}", line_number) from None
        if not amount.is_finite():
            raise TransactionParseError(f"amount must be a finite number, got {value!r}", line_number)
        if not fits(amount):
            raise TransactionParseError(
                f"amount {value!r} is too large, at most {MAX_INTEGER_DIGITS} integer digits allowed", line_number
            )
        return amount

    @staticmethod
    def write_accounts(accounts: Dict[int, ClientAccountState], stream: TextIO) -> None:
        """Write one CSV row per client, ordered by client id."""
        writer = csv.writer(stream, lineterminator="\n")
        writer.writerow(OUTPUT_COLUMNS)
        for client_id in sorted(accounts):
            client, available, held, total, locked = accounts[client_id].summary()
            writer.writerow([
                client,
                format_amount(available),
                format_amount(held),
                format_amount(total),
                str(locked).lower(),
            ])
