"""Exception hierarchy for the ingestion pipeline.

Document-level errors abort processing of a single statement. Errors marked
``recoverable`` are handled inside the pipeline (a fallback path is taken or
the offending line is skipped) and only surface in logs.
"""

from datetime import date
from typing import Any


class BankfeedError(Exception):
    """Base class for all bankfeed errors."""

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"recoverable={self.recoverable!r})"
        )


class ExtractionFailure(BankfeedError):
    """Every extraction strategy produced zero lines."""

    def __init__(self, filename: str, reason: str = "no text could be extracted") -> None:
        super().__init__(
            f"Failed to extract text from {filename}: {reason}",
            details={"filename": filename, "reason": reason},
        )


class TimeoutExceeded(BankfeedError):
    """The wall-clock budget for one document was exhausted."""

    def __init__(self, stage: str, elapsed: float, budget: float) -> None:
        super().__init__(
            f"Processing time budget of {budget:.0f}s exceeded during {stage} "
            f"(elapsed {elapsed:.1f}s)",
            details={"stage": stage, "elapsed": elapsed, "budget": budget},
        )
        self.stage = stage


class OversizedInput(BankfeedError):
    def __init__(self, size: int, limit: int) -> None:
        super().__init__(
            f"File size {size} bytes exceeds maximum allowed size of {limit} bytes",
            details={"size": size, "limit": limit},
        )


class StatementPeriodUnparseable(BankfeedError):
    def __init__(self, raw: str | None) -> None:
        shown = raw if raw else "<not found>"
        super().__init__(
            "Unable to parse statement period from document. "
            f"Extracted period text: {shown}",
            details={"raw": raw},
        )


class FiscalPeriodOverlapMismatch(BankfeedError):
    def __init__(
        self,
        statement_start: date,
        statement_end: date,
        fiscal_start: date,
        fiscal_end: date,
        fiscal_period_id: int,
    ) -> None:
        super().__init__(
            f"Statement period {statement_start} to {statement_end} does not "
            f"overlap specified fiscal period {fiscal_start} to {fiscal_end} "
            f"(ID: {fiscal_period_id}).",
            details={
                "statement_start": statement_start,
                "statement_end": statement_end,
                "fiscal_start": fiscal_start,
                "fiscal_end": fiscal_end,
                "fiscal_period_id": fiscal_period_id,
            },
        )


class UnknownCompany(BankfeedError):
    def __init__(self, company_id: int) -> None:
        super().__init__(
            f"Company not found: {company_id}", details={"company_id": company_id}
        )


class UnknownFiscalPeriod(BankfeedError):
    def __init__(self, fiscal_period_id: int) -> None:
        super().__init__(
            f"Fiscal period not found: {fiscal_period_id}",
            details={"fiscal_period_id": fiscal_period_id},
        )


class RenderSubsystemError(BankfeedError):
    """The page renderer's font or image subsystem is broken.

    Signals that no further page of the document can be rendered in-process
    and the external rasterizer should take over.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message, recoverable=True)


class ExternalToolUnavailable(BankfeedError):
    def __init__(self, tool: str, reason: str = "not found on PATH") -> None:
        super().__init__(
            f"External tool {tool} unavailable: {reason}",
            details={"tool": tool},
            recoverable=True,
        )
        self.tool = tool


class ParserError(BankfeedError):
    """A format parser failed on a single line."""

    def __init__(self, parser: str, line: str, reason: str) -> None:
        super().__init__(
            f"{parser} failed to parse line '{line}': {reason}",
            details={"parser": parser, "line": line},
            recoverable=True,
        )
