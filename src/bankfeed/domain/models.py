"""Domain models."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

ZERO = Decimal("0")


@dataclass(frozen=True)
class RawDocument:
    """Uploaded statement bytes."""

    content: bytes
    filename: str = "statement.pdf"

    @property
    def size(self) -> int:
        return len(self.content)


class ExtractionStrategy(str, Enum):
    """Which path produced the final line set."""

    TEXT_LAYER = "text_layer"
    RECONSTRUCTED = "reconstructed"
    OCR = "ocr"
    EXTERNAL_OCR = "external_ocr"


@dataclass(frozen=True)
class QualityMetrics:
    total_lines: int
    short_lines: int
    date_hits: int
    amount_hits: int
    financial_terms: int

    @property
    def short_line_ratio(self) -> float:
        if self.total_lines == 0:
            return 0.0
        return self.short_lines / self.total_lines


@dataclass(frozen=True)
class ExtractionResult:
    """Lines and metadata extracted from one document."""

    lines: list[str]
    strategy: ExtractionStrategy
    account_number: str | None = None
    statement_period_raw: str | None = None
    metrics: QualityMetrics | None = None


@dataclass(frozen=True)
class StatementPeriod:
    start: date
    end: date


@dataclass(frozen=True)
class ParsingContext:
    """Per-document information shared by all parser calls."""

    statement_date: date
    source: str
    account_number: str | None = None
    statement_period_raw: str | None = None


class TransactionKind(str, Enum):
    CREDIT = "CREDIT"
    DEBIT = "DEBIT"
    SERVICE_FEE = "SERVICE_FEE"


@dataclass(frozen=True)
class ParsedTransaction:
    """A transaction recognized by a format parser."""

    date: date
    description: str
    amount: Decimal
    kind: TransactionKind
    balance: Decimal | None = None
    reference: str | None = None

    @property
    def service_fee(self) -> bool:
        return self.kind == TransactionKind.SERVICE_FEE


@dataclass
class TransactionRecord:
    """A transaction ready for classification and storage.

    Exactly one of ``debit`` and ``credit`` is non-zero.
    """

    company_id: int
    date: date
    description: str
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    balance: Decimal | None = None
    service_fee: bool = False
    fiscal_period_id: int | None = None
    source_file: str | None = None
    reference: str | None = None
    id: int | None = None
    created_at: datetime | None = None


class RejectionReason(str, Enum):
    DUPLICATE = "DUPLICATE"
    OUT_OF_PERIOD = "OUT_OF_PERIOD"
    VALIDATION_ERROR = "VALIDATION_ERROR"


@dataclass(frozen=True)
class RejectedTransaction:
    date: date
    description: str
    debit: Decimal
    credit: Decimal
    balance: Decimal | None
    reason: RejectionReason
    detail: str

    @classmethod
    def from_record(
        cls, record: TransactionRecord, reason: RejectionReason, detail: str
    ) -> "RejectedTransaction":
        return cls(
            date=record.date,
            description=record.description,
            debit=record.debit,
            credit=record.credit,
            balance=record.balance,
            reason=reason,
            detail=detail,
        )


@dataclass(frozen=True)
class FiscalPeriod:
    id: int
    company_id: int
    name: str
    start: date
    end: date

    def contains(self, day: date) -> bool:
        """Inclusive at both ends."""
        return self.start <= day <= self.end


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


@dataclass
class ValidationResult:
    errors: list[FieldError] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def add(self, field_name: str, message: str) -> None:
        self.errors.append(FieldError(field_name, message))

    def describe(self) -> str:
        return "; ".join(f"{e.field}: {e.message}" for e in self.errors)


@dataclass
class ProcessingResult:
    """Outcome of ingesting one statement."""

    transactions: list[TransactionRecord] = field(default_factory=list)
    rejected: list[RejectedTransaction] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    extracted_lines: list[str] = field(default_factory=list)
    processed_lines: int = 0
    account_number: str | None = None
    strategy: ExtractionStrategy | None = None
    statement_period_raw: str | None = None
    statement_period: StatementPeriod | None = None

    def _count(self, reason: RejectionReason) -> int:
        return sum(1 for r in self.rejected if r.reason == reason)

    @property
    def valid_count(self) -> int:
        return len(self.transactions)

    @property
    def duplicate_count(self) -> int:
        return self._count(RejectionReason.DUPLICATE)

    @property
    def out_of_period_count(self) -> int:
        return self._count(RejectionReason.OUT_OF_PERIOD)

    @property
    def invalid_count(self) -> int:
        return self._count(RejectionReason.VALIDATION_ERROR)

    @property
    def statement_period_start(self) -> date | None:
        return self.statement_period.start if self.statement_period else None

    @property
    def statement_period_end(self) -> date | None:
        return self.statement_period.end if self.statement_period else None
