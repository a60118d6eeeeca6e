# src/libs/benchmark-replay-engine/src/benchmark_replay_engine/logic/valuation.py
from decimal import Decimal, getcontext
from typing import Optional

from ..core.models.summaries import HoldingSnapshot

getcontext().prec = 28

HUNDRED = Decimal(100)


def value_holding(
    instrument_code: str,
    quantity_lots: Decimal,
    total_cost: Decimal,
    latest_price: Optional[Decimal],
    shares_per_lot: int,
) -> HoldingSnapshot:
    """
    Values an open position at `latest_price` (per share). Without a price the
    position is carried at cost and flagged.
    """
    shares = quantity_lots * shares_per_lot
    average_cost_per_share = total_cost / shares if shares else Decimal(0)

    if latest_price is None:
        price = average_cost_per_share
        market_value = total_cost
        is_fallback = True
    else:
        price = latest_price
        market_value = shares * latest_price
        is_fallback = False

    unrealized_pl = market_value - total_cost
    return HoldingSnapshot(
        instrument_code=instrument_code,
        quantity_lots=quantity_lots,
        average_cost_per_share=average_cost_per_share,
        total_cost=total_cost,
        latest_price=price,
        market_value=market_value,
        unrealized_pl=unrealized_pl,
        unrealized_pl_percent=percent_of(unrealized_pl, total_cost),
        price_is_fallback=is_fallback,
    )


def percent_of(numerator: Decimal, denominator: Decimal) -> Decimal:
    if not denominator:
        return Decimal(0)
    return numerator / denominator * HUNDRED


def summarize_ledger(total_invested: Decimal, total_proceeds: Decimal, holdings: list[HoldingSnapshot]) -> dict:
    """
    Shared finalization arithmetic of both ledgers:
      realized   = totalProceeds - (totalInvested - openCost)
      unrealized = marketValue - openCost
      returnRate = (realized + unrealized) / totalInvested * 100
    """
    open_cost = sum((holding.total_cost for holding in holdings), Decimal(0))
    market_value = sum((holding.market_value for holding in holdings), Decimal(0))
    realized_pl = total_proceeds - (total_invested - open_cost)
    unrealized_pl = market_value - open_cost
    total_pl = realized_pl + unrealized_pl
    return {
        "total_invested": total_invested,
        "total_proceeds": total_proceeds,
        "open_cost": open_cost,
        "market_value": market_value,
        "realized_pl": realized_pl,
        "unrealized_pl": unrealized_pl,
        "total_pl": total_pl,
        "return_rate": percent_of(total_pl, total_invested),
        "holdings": holdings,
        "unpriced_instruments": [h.instrument_code for h in holdings if h.price_is_fallback],
    }
