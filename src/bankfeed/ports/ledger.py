"""Ledger ports - company data, transaction storage and record checks."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..domain.models import FiscalPeriod, TransactionRecord, ValidationResult


class LedgerPort(ABC):
    """Read-only lookups of companies and fiscal periods."""

    @abstractmethod
    def company_exists(self, company_id: int) -> bool:
        pass

    @abstractmethod
    def fiscal_periods_for_company(self, company_id: int) -> list["FiscalPeriod"]:
        """Return the company's fiscal periods, most recent start first."""
        pass

    @abstractmethod
    def get_fiscal_period(self, fiscal_period_id: int) -> "FiscalPeriod | None":
        pass


class TransactionStorePort(ABC):
    """Persistence of accepted transactions."""

    @abstractmethod
    def save(self, record: "TransactionRecord") -> "TransactionRecord":
        """Persist record; returns it with id and created_at assigned."""
        pass

    @abstractmethod
    def find_matching(self, record: "TransactionRecord") -> "TransactionRecord | None":
        """Return a stored record with the same identifying fields, if any."""
        pass


class DuplicateCheckerPort(ABC):
    @abstractmethod
    def is_duplicate(self, record: "TransactionRecord") -> bool:
        pass

    @abstractmethod
    def find_duplicate(self, record: "TransactionRecord") -> "TransactionRecord | None":
        pass


class FiscalPeriodValidatorPort(ABC):
    @abstractmethod
    def is_within_fiscal_period(self, record: "TransactionRecord") -> bool:
        pass

    @abstractmethod
    def explain(self, record: "TransactionRecord") -> str:
        """Human-readable reason a record falls outside its fiscal period."""
        pass


class TransactionValidatorPort(ABC):
    @abstractmethod
    def validate(self, record: "TransactionRecord") -> "ValidationResult":
        pass
