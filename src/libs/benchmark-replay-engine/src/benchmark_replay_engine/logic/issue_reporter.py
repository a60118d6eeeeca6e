# src/libs/benchmark-replay-engine/src/benchmark_replay_engine/logic/issue_reporter.py
from typing import Optional

from ..core.enums import IssueCode, IssueSeverity
from ..core.models.issues import NormalizationIssue


class IssueReporter:
    """
    Collects the warnings and errors raised while normalizing a transaction batch.
    """
    def __init__(self):
        self._issues: list[NormalizationIssue] = []

    def add_error(self, code: IssueCode, message: str, transaction_id: Optional[str] = None,
                  source_row_ref: Optional[int] = None, instrument_code: Optional[str] = None):
        self._add(IssueSeverity.ERROR, code, message, transaction_id, source_row_ref, instrument_code)

    def add_warning(self, code: IssueCode, message: str, transaction_id: Optional[str] = None,
                    source_row_ref: Optional[int] = None, instrument_code: Optional[str] = None):
        self._add(IssueSeverity.WARNING, code, message, transaction_id, source_row_ref, instrument_code)

    def _add(self, severity, code, message, transaction_id, source_row_ref, instrument_code):
        self._issues.append(NormalizationIssue(
            severity=severity,
            code=code,
            message=message,
            transaction_id=transaction_id,
            source_row_ref=source_row_ref,
            instrument_code=instrument_code,
        ))

    def get_issues(self) -> list[NormalizationIssue]:
        return list(self._issues)

    def has_errors(self) -> bool:
        return any(issue.is_error for issue in self._issues)

    def clear(self):
        self._issues = []
