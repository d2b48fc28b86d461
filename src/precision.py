from decimal import Context, Decimal, ROUND_HALF_UP

SCALE = 4
QUANTUM = Decimal(1).scaleb(-SCALE)

# Largest integer part a single input amount may have.
MAX_INTEGER_DIGITS = 24

# Balances are sums of many amounts, so they get more room than one amount.
LEDGER_CONTEXT = Context(prec=64, rounding=ROUND_HALF_UP)


def normalize(amount: Decimal) -> Decimal:
    """Round an amount to exactly four decimal places, half away from zero."""
    return amount.quantize(QUANTUM, rounding=ROUND_HALF_UP, context=LEDGER_CONTEXT)


def fits(amount: Decimal) -> bool:
    """Whether a single input amount is small enough to be accepted."""
    return amount.is_zero() or amount.adjusted() < MAX_INTEGER_DIGITS


def format_amount(amount: Decimal) -> str:
    """Format decimal with up to 4 decimal places, removing trailing zeros."""
    normalized = normalize(amount)
    if normalized.is_zero():
        return "0"
    return f"{normalized.normalize(LEDGER_CONTEXT):f}"
