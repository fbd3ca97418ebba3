"""
Closed-form breakeven resale price for the Finals scenario.

Solves for the per-ticket resale price ``P`` at which Finals net P&L is
exactly zero::

    net_fee_rate = 1 − resale% − processing%
    target       = purchase + base_carry + hedge_carry − hedge_result
    P            = (target + fixed_cost) / (num_tickets × net_fee_rate)

``hedge_result`` is ≤ 0 here (every hedge lost), so subtracting it adds the
forfeited stakes back into the target.
"""

import logging

logger = logging.getLogger(__name__)


class BreakevenUndefinedError(ValueError):
    """No finite, positive-denominator breakeven price exists."""


def breakeven_resale_price(
    total_purchase: float,
    num_tickets: int,
    resale_fee_percent: float,
    processing_fee_percent: float,
    fixed_transaction_cost: float,
    base_carry: float,
    hedge_carry: float,
    hedge_result: float,
) -> float:
    """Per-ticket resale price that zeroes Finals net P&L.

    Raises:
        BreakevenUndefinedError: If the fee rates sum to 100 % or more (every
            extra dollar of resale is eaten by fees) or ``num_tickets ≤ 0``.

    Examples::

        # 2 × 4185, 15 % + 3 % fees, no hedge, no carry
        breakeven_resale_price(8370, 2, 15, 3, 0, 0, 0, 0)  → 5103.66
    """
    net_fee_rate = 1.0 - resale_fee_percent / 100.0 - processing_fee_percent / 100.0
    # Compare in percent: 1 - 0.97 - 0.03 is not exactly zero in floating point.
    if resale_fee_percent + processing_fee_percent >= 100.0 or net_fee_rate <= 0.0:
        raise BreakevenUndefinedError(
            f"Fee rates sum to {resale_fee_percent + processing_fee_percent!r}% "
            "(≥ 100%); no resale price can break even."
        )
    if num_tickets <= 0:
        raise BreakevenUndefinedError(
            f"num_tickets must be > 0 to price a breakeven, got {num_tickets!r}."
        )
    target = total_purchase + base_carry + hedge_carry - hedge_result
    price = (target + fixed_transaction_cost) / (num_tickets * net_fee_rate)
    logger.debug("Breakeven resale price %.2f (net fee rate %.4f)", price, net_fee_rate)
    return price
