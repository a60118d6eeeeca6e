# src/libs/benchmark-replay-engine/src/benchmark_replay_engine/core/models/issues.py
from typing import List, Optional

from pydantic import BaseModel, Field

from ..enums import IssueCode, IssueSeverity
from .transaction import Transaction


class NormalizationIssue(BaseModel):
    """
    A problem found while normalizing a transaction batch.
    """
    severity: IssueSeverity = Field(..., description="WARNING issues are informational; ERROR issues reject the batch.")
    code: IssueCode = Field(..., description="Standardized reason code.")
    message: str = Field(..., description="Human-readable explanation.")
    transaction_id: Optional[str] = Field(None, description="ID of the offending transaction, when known.")
    source_row_ref: Optional[int] = Field(None, description="Row number in the source statement, when known.")
    instrument_code: Optional[str] = Field(None, description="Instrument involved, when known.")

    @property
    def is_error(self) -> bool:
        return self.severity == IssueSeverity.ERROR


class NormalizationResult(BaseModel):
    """
    Output of the transaction normalizer. When any hard error is present the
    batch is rejected and `transactions` is empty.
    """
    transactions: List[Transaction] = Field(default_factory=list, description="Deduplicated transactions sorted by trade date.")
    duplicate_count: int = Field(0, description="Number of records collapsed as duplicates.")
    issues: List[NormalizationIssue] = Field(default_factory=list, description="Warnings and errors found in the batch.")

    @property
    def errors(self) -> List[NormalizationIssue]:
        return [issue for issue in self.issues if issue.is_error]

    @property
    def warnings(self) -> List[NormalizationIssue]:
        return [issue for issue in self.issues if not issue.is_error]

    @property
    def is_valid(self) -> bool:
        return not self.errors
