"""Bookkeeping rules configuration.

This module defines the fee schedule and trading conventions as
constants, making them explicit and testable. The fee schedule follows
the A-share retail broker schedule the journal was built for:
- Transfer fee on both sides
- Commission on both sides, with a minimum charge per trade
- Stamp duty on the sell side only
"""

from decimal import Decimal
from typing import Final

# =============================================================================
# FEE SCHEDULE
# =============================================================================

# Transfer fee: 0.001% of notional
TRANSFER_FEE_RATE: Final[Decimal] = Decimal("0.00001")

# Commission: 0.03% of notional, never below the minimum charge
COMMISSION_RATE: Final[Decimal] = Decimal("0.0003")
MIN_COMMISSION: Final[Decimal] = Decimal("5")

# Stamp duty: 0.05% of notional, sell side only
STAMP_DUTY_RATE: Final[Decimal] = Decimal("0.0005")

# Every sub-fee is rounded half-up to cents before summing
FEE_PRECISION: Final[Decimal] = Decimal("0.01")


# =============================================================================
# TRADING CONVENTIONS
# =============================================================================

# Shares per board lot
LOT_SIZE: Final[int] = 100

# Snapshot format version written by export
SNAPSHOT_VERSION: Final[int] = 1


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================


def round_lots(quantity: int, lot_size: int = LOT_SIZE) -> int:
    """Round a share quantity down to whole lots.

    Args:
        quantity: Raw share quantity
        lot_size: Shares per lot

    Returns:
        Largest multiple of lot_size not above quantity (never negative)
    """
    if quantity <= 0 or lot_size <= 0:
        return 0
    return (quantity // lot_size) * lot_size


def is_whole_lots(quantity: int, lot_size: int = LOT_SIZE) -> bool:
    """Check whether a quantity is a positive multiple of the lot size."""
    return quantity > 0 and quantity % lot_size == 0
