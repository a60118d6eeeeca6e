# src/libs/benchmark-replay-engine/src/benchmark_replay_engine/core/enums.py
from enum import Enum

class TransactionKind(str, Enum):
    """Direction of a brokerage trade."""
    BUY = "BUY"
    SELL = "SELL"

class IssueSeverity(str, Enum):
    """Only ERROR issues block downstream processing."""
    WARNING = "WARNING"
    ERROR = "ERROR"

class IssueCode(str, Enum):
    """Standardized reason codes for normalization issues."""
    MISSING_FIELDS = "MISSING_FIELDS"
    NON_POSITIVE_VALUE = "NON_POSITIVE_VALUE"
    INVALID_VALUE = "INVALID_VALUE"
    INSUFFICIENT_HOLDINGS = "INSUFFICIENT_HOLDINGS"
