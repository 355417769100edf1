"""Default record checks backed by the ledger ports."""

import logging
from datetime import date

from ..ports.ledger import (
    DuplicateCheckerPort,
    FiscalPeriodValidatorPort,
    LedgerPort,
    TransactionStorePort,
    TransactionValidatorPort,
)
from .models import ZERO, TransactionRecord, ValidationResult

logger = logging.getLogger(__name__)


class TransactionDuplicateChecker(DuplicateCheckerPort):
    """A record is a duplicate when the store already holds one with the same
    company, date, amounts, description and balance."""

    def __init__(self, store: TransactionStorePort) -> None:
        self.store = store

    def is_duplicate(self, record: TransactionRecord) -> bool:
        return self.find_duplicate(record) is not None

    def find_duplicate(self, record: TransactionRecord) -> TransactionRecord | None:
        return self.store.find_matching(record)


class FiscalPeriodBoundaryValidator(FiscalPeriodValidatorPort):
    """Checks a record's date against its assigned fiscal period (inclusive)."""

    def __init__(self, ledger: LedgerPort) -> None:
        self.ledger = ledger

    def is_within_fiscal_period(self, record: TransactionRecord) -> bool:
        if record.fiscal_period_id is None or record.date is None:
            return False
        period = self.ledger.get_fiscal_period(record.fiscal_period_id)
        if period is None:
            logger.warning(f"Fiscal period not found: {record.fiscal_period_id}")
            return False
        return period.contains(record.date)

    def explain(self, record: TransactionRecord) -> str:
        if record.fiscal_period_id is None:
            return "Transaction has no fiscal period assigned"
        if record.date is None:
            return "Transaction has no date"
        period = self.ledger.get_fiscal_period(record.fiscal_period_id)
        if period is None:
            return f"Fiscal period not found (ID: {record.fiscal_period_id})"

        if record.date < period.start:
            return (
                f"Transaction date {record.date} is before fiscal period start date "
                f"{period.start} (Period: {period.name}, ID: {period.id}). "
                "Please select the fiscal period that contains this transaction."
            )
        if record.date > period.end:
            return (
                f"Transaction date {record.date} is after fiscal period end date "
                f"{period.end} (Period: {period.name}, ID: {period.id}). "
                "Please select the fiscal period that contains this transaction."
            )
        return ""


class TransactionFieldValidator(TransactionValidatorPort):
    """Field-level rules every stored transaction must satisfy."""

    def __init__(self, today=date.today) -> None:
        self._today = today

    def validate(self, record: TransactionRecord) -> ValidationResult:
        result = ValidationResult()

        if record.company_id is None:
            result.add("company_id", "Company ID is required")
        if record.fiscal_period_id is None:
            result.add("fiscal_period_id", "Fiscal period ID is required")

        if record.date is None:
            result.add("date", "Transaction date is required")
        elif record.date > self._today():
            result.add("date", "Transaction date cannot be in the future")

        if not record.description or not record.description.strip():
            result.add("description", "Transaction details are required")

        debit = record.debit or ZERO
        credit = record.credit or ZERO
        if debit < ZERO:
            result.add("debit", "Debit amount cannot be negative")
        if credit < ZERO:
            result.add("credit", "Credit amount cannot be negative")
        if debit != ZERO and credit != ZERO:
            result.add("amount", "Transaction cannot have both debit and credit amounts")
        elif debit == ZERO and credit == ZERO:
            result.add("amount", "Either debit or credit amount must be specified")

        return result
