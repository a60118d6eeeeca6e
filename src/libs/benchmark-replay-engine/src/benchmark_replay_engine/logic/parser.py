# src/libs/benchmark-replay-engine/src/benchmark_replay_engine/logic/parser.py
import logging
from collections.abc import Mapping
from typing import Any, Iterable, Optional

from pydantic import TypeAdapter, ValidationError

from ..core.enums import IssueCode
from ..core.models.transaction import Transaction
from .issue_reporter import IssueReporter

logger = logging.getLogger(__name__)

_NON_POSITIVE_ERROR_TYPES = {"greater_than", "greater_than_equal"}


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def classify_validation_error(error: dict) -> IssueCode:
    """Maps a single pydantic error entry onto an issue code."""
    if not error.get("loc"):
        return IssueCode.INVALID_VALUE
    if error["type"] == "missing" or _is_blank(error.get("input")):
        return IssueCode.MISSING_FIELDS
    if error["type"] in _NON_POSITIVE_ERROR_TYPES:
        return IssueCode.NON_POSITIVE_VALUE
    return IssueCode.INVALID_VALUE


class TransactionParser:
    """
    Parses raw transaction records into validated Transaction objects.
    Records that fail validation are reported and left out of the result.
    """
    def __init__(self, issue_reporter: IssueReporter):
        self._single_transaction_adapter = TypeAdapter(Transaction)
        self._issue_reporter = issue_reporter

    def parse_transactions(self, raw_transactions: Iterable[Any]) -> list[Transaction]:
        parsed_transactions: list[Transaction] = []
        for position, raw_txn in enumerate(raw_transactions, start=1):
            try:
                parsed_transactions.append(self._single_transaction_adapter.validate_python(raw_txn))
            except ValidationError as e:
                self._report_validation_error(raw_txn, position, e)
        return parsed_transactions

    def _report_validation_error(self, raw_txn: Any, position: int, error: ValidationError):
        fields = raw_txn if isinstance(raw_txn, Mapping) else {}
        transaction_id = str(fields["id"]) if fields.get("id") is not None else None
        source_row_ref = self._source_row_ref(fields)
        instrument_code = fields.get("symbol", fields.get("instrument_code"))
        if instrument_code is not None:
            instrument_code = str(instrument_code)
        label = f"Row {source_row_ref}" if source_row_ref is not None else f"Record #{position}"

        problems: dict[IssueCode, list[str]] = {}
        for err in error.errors():
            field = ".".join(str(part) for part in err.get("loc", ())) or "record"
            code = classify_validation_error(err)
            if code == IssueCode.MISSING_FIELDS:
                problems.setdefault(code, []).append(field)
            else:
                problems.setdefault(code, []).append(f"{field}: {err['msg']}")

        for code, details in problems.items():
            if code == IssueCode.MISSING_FIELDS:
                message = f"{label}: missing required field(s): {', '.join(details)}"
            elif code == IssueCode.NON_POSITIVE_VALUE:
                message = f"{label}: quantity and amount must be positive ({'; '.join(details)})"
            else:
                message = f"{label}: invalid value ({'; '.join(details)})"
            logger.debug(message)
            self._issue_reporter.add_error(
                code,
                message,
                transaction_id=transaction_id,
                source_row_ref=source_row_ref,
                instrument_code=instrument_code,
            )

    @staticmethod
    def _source_row_ref(fields: Mapping) -> Optional[int]:
        value = fields.get("originalRow", fields.get("source_row_ref"))
        return value if isinstance(value, int) else None
