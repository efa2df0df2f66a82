from decimal import Decimal, localcontext

from musd_indexer.constants import PERCENTAGE_SCALE, PRICE_SCALE

# Significant digits used for decimal division, matching the subgraph BigDecimal precision
DECIMAL_PRECISION = 34


def _divide(numerator: int, denominator: int) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        return Decimal(numerator) / Decimal(denominator)


def calculate_health_factor(collateral: int, debt: int, collateral_price: int) -> Decimal:
    """
    Calculate the health factor for a position, expressed as a percentage (100 = 1.0x).

    The collateral value is `collateral * price / PRICE_SCALE`, truncated to an integer before the
    ratio is taken. Returns zero if the debt, the price or the collateral value is zero.
    """

    if debt == 0 or collateral_price == 0:
        return Decimal(0)

    collateral_value = collateral * collateral_price // PRICE_SCALE
    if collateral_value == 0:
        return Decimal(0)

    return _divide(collateral_value * PERCENTAGE_SCALE, debt)


def to_percentage(value: int | Decimal) -> Decimal:
    """
    Convert a percentage-scaled value to a plain ratio, e.g. 150 -> 1.5
    """

    if value == 0:
        return Decimal(0)

    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        return Decimal(value) / PERCENTAGE_SCALE
