# src/libs/benchmark-replay-engine/src/benchmark_replay_engine/core/models/transaction.py
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..enums import TransactionKind


def _generate_transaction_id() -> str:
    return f"txn_{uuid.uuid4().hex[:12]}"


class Transaction(BaseModel):
    """
    A single validated brokerage trade. Quantities are in lots; amounts are in
    the account currency. Instances are immutable once validated.

    Field aliases match the decoded statement feed (symbol, name, type, date,
    quantity, amount, originalRow) so raw rows validate without remapping.
    """
    id: str = Field(default_factory=_generate_transaction_id, description="Unique identifier for the transaction")
    instrument_code: str = Field(..., alias="symbol", min_length=1, description="Exchange code of the traded instrument")
    display_name: Optional[str] = Field(None, alias="name", description="Human-readable instrument name")
    kind: TransactionKind = Field(..., alias="type", description="BUY or SELL")
    trade_date: date = Field(..., alias="date", description="Trade date")
    quantity_lots: Decimal = Field(..., alias="quantity", gt=0, description="Quantity in lots of 1000 shares")
    gross_amount: Decimal = Field(..., alias="amount", gt=0, description="Gross trade amount")
    fee: Decimal = Field(default=Decimal(0), ge=0, description="Brokerage commission charged")
    tax: Decimal = Field(default=Decimal(0), ge=0, description="Transaction tax charged")
    source_row_ref: Optional[int] = Field(None, alias="originalRow", description="Row number in the source statement")

    model_config = ConfigDict(
        populate_by_name=True,
        frozen=True,
        str_strip_whitespace=True,
        extra='ignore'
    )

    @field_validator('kind', mode='before')
    @classmethod
    def normalize_kind(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator('trade_date', mode='before')
    @classmethod
    def parse_trade_date(cls, v: Any) -> Any:
        """Accepts date objects, YYYY-MM-DD, YYYY/M/D (padded or not) and YYYYMMDD."""
        if isinstance(v, datetime):
            return v.date()
        if isinstance(v, str):
            v = v.strip()
            if "/" in v:
                parts = v.split("/")
                if len(parts) == 3 and all(part.isdigit() for part in parts):
                    return f"{parts[0]}-{parts[1].zfill(2)}-{parts[2].zfill(2)}"
                return v
            if len(v) == 8 and v.isdigit():
                return f"{v[:4]}-{v[4:6]}-{v[6:]}"
        return v

    @field_validator('fee', 'tax', mode='before')
    @classmethod
    def default_missing_charges(cls, v: Any) -> Any:
        if v is None or v == "":
            return Decimal(0)
        return v

    @property
    def dedup_key(self) -> Tuple[date, str, TransactionKind, Decimal, Decimal]:
        """Records colliding on this tuple are the same trade."""
        return (self.trade_date, self.instrument_code, self.kind, self.quantity_lots, self.gross_amount)
