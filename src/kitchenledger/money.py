"""
kitchenledger.money
~~~~~~~~~~~~~~~~~~~
Decimal arithmetic for VAT-inclusive amounts.

Amounts are always ``Decimal``; rounding is half-up to the currency minor
unit (cents) and happens only where a figure is stored or displayed.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0")
_HUNDRED = Decimal("100")

# Largest accepted amount; keeps quantize within the default 28-digit context.
MAX_AMOUNT = Decimal("1000000000000")


def round_money(d: Decimal) -> Decimal:
    return d.quantize(CENT, rounding=ROUND_HALF_UP)


def embedded_vat(gross: Decimal, percent: Decimal) -> Decimal:
    """
    VAT contained in a VAT-inclusive ``gross`` at ``percent`` — unrounded.

    ``gross − gross / (1 + percent/100)``; exactly zero for a 0 % rate.
    """
    if percent == 0:
        return ZERO
    return gross - gross / (1 + percent / _HUNDRED)


def added_vat(net: Decimal, percent: Decimal) -> Decimal:
    """VAT charged on top of a VAT-exclusive ``net`` amount — unrounded."""
    return net * percent / _HUNDRED
