import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Optional, Tuple

from models import TransactionMeta, TransactionRecord, TransactionType, TransitionResult
from precision import LEDGER_CONTEXT, normalize

logger = logging.getLogger(__name__)


@dataclass
class ClientAccountState:
    """
    Balances and ledger of a single client.

    Every transition returns a TransitionResult; a failed transition leaves the
    state untouched. The state machine does not look at `locked` itself:
    callers must stop dispatching records once an account is locked.
    """

    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    locked: bool = False
    ledger: Dict[int, TransactionMeta] = field(default_factory=dict)

    @property
    def total(self) -> Decimal:
        return LEDGER_CONTEXT.add(self.available, self.held)

    def apply(self, record: TransactionRecord) -> TransitionResult:
        """Dispatch a record to the matching transition."""
        match record.transaction_type:
            case TransactionType.DEPOSIT:
                if record.amount is None:
                    return TransitionResult.INVALID_AMOUNT
                return self.deposit(record.transaction_id, record.amount)
            case TransactionType.WITHDRAWAL:
                if record.amount is None:
                    return TransitionResult.INVALID_AMOUNT
                return self.withdraw(record.transaction_id, record.amount)
            case TransactionType.DISPUTE:
                return self.dispute(record.transaction_id)
            case TransactionType.RESOLVE:
                return self.resolve(record.transaction_id)
            case TransactionType.CHARGEBACK:
                return self.chargeback(record.transaction_id)

    def deposit(self, transaction_id: int, amount: Decimal) -> TransitionResult:
        """Credit the account. Overwrites any ledger entry with the same id."""
        rounded_amount = normalize(amount)
        if rounded_amount <= 0:
            return TransitionResult.INVALID_AMOUNT

        self.available = LEDGER_CONTEXT.add(self.available, rounded_amount)
        self.ledger[transaction_id] = TransactionMeta(amount=rounded_amount)
        return TransitionResult.SUCCESS

    def withdraw(self, transaction_id: int, amount: Decimal) -> TransitionResult:
        """
        Debit the account.

        The funds check uses the amount as given while the debit uses the
        rounded amount, so e.g. withdrawing 1.00004 from 1.0000 available is
        rejected even though it rounds to 1.0000.
        """
        rounded_amount = normalize(amount)
        if rounded_amount <= 0:
            return TransitionResult.INVALID_AMOUNT

        if amount > self.available:
            return TransitionResult.INSUFFICIENT_FUNDS

        self.available = LEDGER_CONTEXT.subtract(self.available, rounded_amount)
        self.ledger[transaction_id] = TransactionMeta(amount=rounded_amount)
        return TransitionResult.SUCCESS

    def dispute(self, transaction_id: int) -> TransitionResult:
        """
        Hold the funds of a prior deposit or withdrawal.

        Disputing an entry that is already under dispute moves the amount a
        second time.
        """
        entry = self.ledger.get(transaction_id)
        if entry is None:
            return TransitionResult.TRANSACTION_NOT_FOUND

        entry.under_dispute = True
        self.available = LEDGER_CONTEXT.subtract(self.available, entry.amount)
        self.held = LEDGER_CONTEXT.add(self.held, entry.amount)
        return TransitionResult.SUCCESS

    def resolve(self, transaction_id: int) -> TransitionResult:
        """Release held funds back to available. The dispute flag stays set."""
        entry = self.ledger.get(transaction_id)
        if entry is None:
            return TransitionResult.TRANSACTION_NOT_FOUND
        if not entry.under_dispute:
            return TransitionResult.NOT_DISPUTED

        self.held = LEDGER_CONTEXT.subtract(self.held, entry.amount)
        self.available = LEDGER_CONTEXT.add(self.available, entry.amount)
        return TransitionResult.SUCCESS

    def chargeback(self, transaction_id: int) -> TransitionResult:
        """Write off held funds and lock the account. Available is not touched."""
        entry = self.ledger.get(transaction_id)
        if entry is None:
            return TransitionResult.TRANSACTION_NOT_FOUND
        if not entry.under_dispute:
            return TransitionResult.NOT_DISPUTED

        entry.under_dispute = False
        self.held = LEDGER_CONTEXT.subtract(self.held, entry.amount)
        self.locked = True
        logger.info(f"Client {self.client_id} locked after chargeback of tx {transaction_id}")
        return TransitionResult.SUCCESS

    def get_transaction(self, transaction_id: int) -> Optional[TransactionMeta]:
        return self.ledger.get(transaction_id)

    def summary(self) -> Tuple[int, Decimal, Decimal, Decimal, bool]:
        """Output row: client, available, held, total, locked."""
        available = normalize(self.available)
        held = normalize(self.held)
        return self.client_id, available, held, normalize(LEDGER_CONTEXT.add(available, held)), self.locked
