"""Fee model for journal trades.

Pure functions mapping a trade notional amount to the individual fee
components. Every sub-fee is rounded half-up to cents before it is
summed, so the combined fees match what the broker statement shows.

Example:
    amount = 1000.00
    transfer_fee = 0.01        (1000 × 0.00001)
    commission   = 5.00        (max(0.30, 5))
    stamp_duty   = 0.50        (1000 × 0.0005, sell side only)
    buy_fee      = 5.01
    sell_fee     = 5.51
"""

from decimal import ROUND_HALF_UP, Decimal

from tradeback.domain.models.enums import TradeType
from tradeback.domain.rules import (
    COMMISSION_RATE,
    FEE_PRECISION,
    MIN_COMMISSION,
    STAMP_DUTY_RATE,
    TRANSFER_FEE_RATE,
)


def round2(value: Decimal) -> Decimal:
    """Round half-up to 2 decimal places."""
    return value.quantize(FEE_PRECISION, rounding=ROUND_HALF_UP)


def transfer_fee(amount: Decimal) -> Decimal:
    """Transfer fee charged on both sides."""
    return round2(amount * TRANSFER_FEE_RATE)


def commission(amount: Decimal) -> Decimal:
    """Broker commission, never below the minimum charge.

    The minimum applies even to a zero or negative amount; callers
    that may pass such amounts must guard themselves.
    """
    return round2(max(amount * COMMISSION_RATE, MIN_COMMISSION))


def stamp_duty(amount: Decimal) -> Decimal:
    """Stamp duty, sell side only."""
    return round2(amount * STAMP_DUTY_RATE)


def buy_fee(amount: Decimal) -> Decimal:
    """Total fee for a BUY of the given notional."""
    return round2(transfer_fee(amount) + commission(amount))


def sell_fee(amount: Decimal) -> Decimal:
    """Total fee for a SELL of the given notional."""
    return round2(transfer_fee(amount) + commission(amount) + stamp_duty(amount))


def trade_fee(trade_type: TradeType, amount: Decimal) -> Decimal:
    """Total fee for a trade of the given side and notional."""
    if trade_type == TradeType.SELL:
        return sell_fee(amount)
    return buy_fee(amount)


def net_proceeds(amount: Decimal) -> Decimal:
    """Cash actually received from a SELL of the given notional."""
    return amount - sell_fee(amount)
