# src/libs/benchmark-replay-engine/src/benchmark_replay_engine/core/models/settings.py
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from ... import config


class ReplaySettings(BaseModel):
    """
    Parameters of the synthetic benchmark strategy. Defaults come from the
    environment; callers may override any of them per computation.
    """
    benchmark_instrument_code: str = Field(default=config.BENCHMARK_INSTRUMENT_CODE, description="Instrument bought and sold in place of the user's trades.")
    commission_rate: Decimal = Field(default=config.BENCHMARK_COMMISSION_RATE, description="Brokerage commission as a fraction of trade value.")
    transaction_tax_rate: Decimal = Field(default=config.BENCHMARK_TRANSACTION_TAX_RATE, description="Transaction tax on sells as a fraction of trade value.")
    shares_per_lot: int = Field(default=config.SHARES_PER_LOT, description="Base units per lot.")

    model_config = ConfigDict(frozen=True)
