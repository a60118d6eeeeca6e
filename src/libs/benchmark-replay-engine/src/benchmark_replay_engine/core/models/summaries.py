# src/libs/benchmark-replay-engine/src/benchmark_replay_engine/core/models/summaries.py
from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from .issues import NormalizationResult


class DateRange(BaseModel):
    start: date
    end: date


class TransactionSummary(BaseModel):
    """
    Headline statistics of a normalized transaction batch.
    """
    total: int = Field(0, description="Number of transactions.")
    buy_count: int = Field(0, description="Number of BUY transactions.")
    sell_count: int = Field(0, description="Number of SELL transactions.")
    unique_instruments: int = Field(0, description="Number of distinct instruments traded.")
    date_range: Optional[DateRange] = Field(None, description="First and last trade date, or None for an empty batch.")
    total_invested: Decimal = Field(Decimal(0), description="Sum of BUY gross amounts.")
    total_fees: Decimal = Field(Decimal(0), description="Sum of commissions charged.")
    total_tax: Decimal = Field(Decimal(0), description="Sum of transaction taxes charged.")


class HoldingSnapshot(BaseModel):
    """
    An open position valued at the latest available price. When no price could
    be resolved the holding is valued at its average cost and flagged.
    """
    instrument_code: str
    quantity_lots: Decimal
    average_cost_per_share: Decimal
    total_cost: Decimal
    latest_price: Decimal
    market_value: Decimal
    unrealized_pl: Decimal
    unrealized_pl_percent: Decimal
    price_is_fallback: bool = False


class PerformanceSummary(BaseModel):
    """
    Finalized output of a FIFO ledger.
    """
    total_invested: Decimal = Field(Decimal(0), description="Cumulative cost of all buys.")
    total_proceeds: Decimal = Field(Decimal(0), description="Cumulative proceeds of all sells.")
    open_cost: Decimal = Field(Decimal(0), description="Cost basis of the lots still open.")
    market_value: Decimal = Field(Decimal(0), description="Value of the open lots at the latest prices.")
    realized_pl: Decimal = Field(Decimal(0), description="totalProceeds - (totalInvested - openCost).")
    unrealized_pl: Decimal = Field(Decimal(0), description="marketValue - openCost.")
    total_pl: Decimal = Field(Decimal(0), description="realized + unrealized.")
    return_rate: Decimal = Field(Decimal(0), description="totalPL / totalInvested * 100, or 0 when nothing was invested.")
    holdings: List[HoldingSnapshot] = Field(default_factory=list)
    unpriced_instruments: List[str] = Field(default_factory=list, description="Holdings valued at average cost for lack of a latest price.")


class DivergenceAnomaly(BaseModel):
    """
    A benchmark sell that the simulated holdings could not satisfy.
    """
    trade_date: date
    originating_instrument: str
    user_sell_amount: Decimal
    benchmark_holding_value_at_failure: Decimal
    shortfall_amount: Decimal
    required_quantity_lots: Decimal
    held_quantity_lots: Decimal
    benchmark_price: Decimal


class BenchmarkSummary(PerformanceSummary):
    instrument_code: str
    latest_price: Decimal
    anomalies: List[DivergenceAnomaly] = Field(default_factory=list)


class PerformanceComparison(BaseModel):
    user_return_rate: Decimal
    benchmark_return_rate: Decimal
    difference: Decimal
    is_better: bool


class ReplayReport(BaseModel):
    """
    End-to-end result of replaying a transaction history against the benchmark.
    """
    correlation_id: str
    normalization: NormalizationResult
    summary: TransactionSummary
    portfolio: PerformanceSummary
    benchmark: BenchmarkSummary
    comparison: PerformanceComparison
