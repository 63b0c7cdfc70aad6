"""Price and size formatting for Decibel orders.

The ledger only accepts integers, so every user-facing number goes through
two steps before it is submitted:

1. Snap to the market grid (tick size for prices, lot size for sizes) using
   round-half-up in chain units, then convert back to human units.
2. Convert the snapped human value to chain units with ``floor``.

Rounding when snapping and flooring when finalizing are deliberately
different: the floor guarantees the submitted integer never exceeds the
snapped value.
"""
import logging
import math
from decimal import Decimal, ROUND_FLOOR, ROUND_HALF_UP

from .decibel_models import MarketSpec, NormalizedOrderParams
from .exceptions import InvalidInputError

logger = logging.getLogger(__name__)

# USDC collateral has a fixed precision and no tick size.
USDC_DECIMALS = 6


def _require_finite(value: float) -> None:
    if not math.isfinite(value):
        raise InvalidInputError(f"Expected a finite number, got {value}")


def _scaled(value: float, decimals: int) -> Decimal:
    _require_finite(value)
    # str() keeps the shortest repr, so 0.0001 scales to exactly 100000.
    return Decimal(str(value)).scaleb(decimals)


def _snap_to_grid(value: float, decimals: int, increment: int) -> int:
    """Round ``value`` to the nearest multiple of ``increment`` in chain units."""
    steps = (_scaled(value, decimals) / increment).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return int(steps) * increment


def to_chain_units(human_value: float, decimals: int) -> int:
    """Convert a human-readable amount to integer chain units, truncating.

    Args:
        human_value: Amount in human units (e.g. 50000.5)
        decimals: Decimal exponent of the asset or market field

    Returns:
        ``floor(human_value * 10**decimals)``
    """
    return int(_scaled(human_value, decimals).to_integral_value(rounding=ROUND_FLOOR))


def to_human_units(chain_value: int, decimals: int) -> float:
    """Convert integer chain units back to a human-readable float."""
    return float(Decimal(int(chain_value)).scaleb(-decimals))


def usdc_to_chain_units(usdc_amount: float) -> int:
    """Convert a USDC amount to chain units (6 decimals, no grid)."""
    return to_chain_units(usdc_amount, USDC_DECIMALS)


def _minimum_chain_size(market: MarketSpec) -> int:
    """Smallest lot-aligned size that satisfies the market minimum."""
    lots = -(-market.min_size // market.lot_size)
    return max(lots, 1) * market.lot_size


def round_to_valid_price(price: float, market: MarketSpec) -> float:
    """Round a price to the market tick size.

    A price of 0 means "no limit price" and is returned unchanged. A non-zero
    price that would snap to 0 or below is clamped to one tick.
    """
    _require_finite(price)
    if price == 0:
        return 0.0

    snapped = _snap_to_grid(price, market.price_decimals, market.tick_size)
    if snapped <= 0:
        logger.warning(
            f"Price {price} is below one tick on {market.market_name}, "
            f"using {to_human_units(market.tick_size, market.price_decimals)}"
        )
        snapped = market.tick_size

    return to_human_units(snapped, market.price_decimals)


def round_to_valid_order_size(size: float, market: MarketSpec) -> float:
    """Round a size to the market lot size, clamping up to the minimum.

    A size of 0 is returned unchanged. Sizes below the minimum are replaced
    by the minimum with a warning instead of being rejected.
    """
    _require_finite(size)
    if size == 0:
        return 0.0

    minimum = _minimum_chain_size(market)
    if size < market.min_size_human:
        minimum_human = to_human_units(minimum, market.size_decimals)
        logger.warning(f"Size {size} is below minimum {minimum_human}, using minimum")
        return minimum_human

    snapped = _snap_to_grid(size, market.size_decimals, market.lot_size)
    if snapped < minimum:
        snapped = minimum

    return to_human_units(snapped, market.size_decimals)


def normalize_order(price: float, size: float, market: MarketSpec) -> NormalizedOrderParams:
    """Complete formatting pipeline: user input to valid chain units.

    Args:
        price: User-specified limit price (0 for no limit price)
        size: User-specified size
        market: Market the order is placed on

    Returns:
        Grid-aligned human values and their chain unit integers
    """
    human_price = round_to_valid_price(price, market)
    human_size = round_to_valid_order_size(size, market)

    chain_price = to_chain_units(human_price, market.price_decimals)
    chain_size = to_chain_units(human_size, market.size_decimals)

    logger.debug(
        f"Normalized order on {market.market_name}: price {price} -> {human_price} ({chain_price}), "
        f"size {size} -> {human_size} ({chain_size})"
    )

    return NormalizedOrderParams(
        human_price=human_price,
        human_size=human_size,
        chain_price=chain_price,
        chain_size=chain_size,
        size_clamped=size != 0 and size < market.min_size_human,
    )
