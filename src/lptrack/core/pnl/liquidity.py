"""Concentrated-liquidity math for valuing open positions."""

from decimal import Decimal

TICK_BASE = Decimal("1.0001")


def tick_to_sqrt_price(tick: int) -> Decimal:
    """Square root of the token1/token0 raw price at a tick."""
    return TICK_BASE ** (Decimal(tick) / 2)


def amounts_for_liquidity(
    liquidity: int, tick_lower: int, tick_upper: int, current_tick: int
) -> tuple[Decimal, Decimal]:
    """Raw token0 / token1 amounts held by ``liquidity`` at ``current_tick``.

    Below the range the position is all token0, above it all token1.
    """
    sqrt_lower = tick_to_sqrt_price(tick_lower)
    sqrt_upper = tick_to_sqrt_price(tick_upper)
    L = Decimal(liquidity)

    if current_tick <= tick_lower:
        return L * (1 / sqrt_lower - 1 / sqrt_upper), Decimal(0)
    if current_tick >= tick_upper:
        return Decimal(0), L * (sqrt_upper - sqrt_lower)

    sqrt_price = tick_to_sqrt_price(current_tick)
    return L * (1 / sqrt_price - 1 / sqrt_upper), L * (sqrt_price - sqrt_lower)


def is_in_range(tick_lower: int, tick_upper: int, current_tick: int) -> bool:
    """True when the pool tick sits inside the position's range."""
    return tick_lower <= current_tick < tick_upper
