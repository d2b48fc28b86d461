from collections import Counter
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional


class TransactionParseError(ValueError):
    """Malformed input record. Aborts the whole run.

    line_number is the line in the input file, with the header as line 1.
    """

    def __init__(self, message: str, line_number: Optional[int] = None):
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @classmethod
    def parse(cls, text: str) -> "TransactionType":
        try:
            return _TRANSACTION_TYPE_ALIASES[text.strip()]
        except KeyError:
            raise TransactionParseError(f"unknown transaction type {text!r}") from None


# Lower-case names and upper-case variant names, matched exactly.
_TRANSACTION_TYPE_ALIASES = {
    "deposit": TransactionType.DEPOSIT,
    "DEPOSIT": TransactionType.DEPOSIT,
    "withdrawal": TransactionType.WITHDRAWAL,
    "WITHDRAW": TransactionType.WITHDRAWAL,
    "dispute": TransactionType.DISPUTE,
    "DISPUTE": TransactionType.DISPUTE,
    "resolve": TransactionType.RESOLVE,
    "RESOLVE": TransactionType.RESOLVE,
    "chargeback": TransactionType.CHARGEBACK,
    "CHARGEBACK": TransactionType.CHARGEBACK,
}


class TransitionResult(Enum):
    SUCCESS = "success"
    INVALID_AMOUNT = "invalid_amount"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    TRANSACTION_NOT_FOUND = "transaction_not_found"
    NOT_DISPUTED = "not_disputed"

    @property
    def ok(self) -> bool:
        return self is TransitionResult.SUCCESS


@dataclass
class TransactionRecord:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None

    def __repr__(self) -> str:
        return f"TransactionRecord({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass
class TransactionMeta:
    """Ledger entry for a deposit or withdrawal, addressable by a later dispute."""

    amount: Decimal
    under_dispute: bool = False


class ProcessingStats:
    """Counters for tracking processing statistics."""

    def __init__(self):
        self.applied = 0
        self.rejected = 0
        self.skipped_locked = 0
        self.rejections_by_reason: Counter = Counter()

    def record_success(self):
        self.applied += 1

    def record_rejection(self, result: TransitionResult):
        self.rejected += 1
        self.rejections_by_reason[result] += 1

    def record_locked_skip(self):
        self.skipped_locked += 1

    def __str__(self) -> str:
        return f"Applied: {self.applied}, Rejected: {self.rejected}, Skipped (locked): {self.skipped_locked}"
