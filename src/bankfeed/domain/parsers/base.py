"""Format parser interfaces and shared helpers."""

import re
from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation
from enum import Enum

from ..models import ParsedTransaction, ParsingContext

REFERENCE_PATTERN = re.compile(r"\d{8,}")


def parse_amount(text: str) -> Decimal:
    """Parse ``1,234.56``, ``1,234.56-`` or ``1,234.56Cr`` as a positive Decimal."""
    cleaned = re.sub(r"(?i)(cr|dr)$", "", text.strip())
    cleaned = cleaned.replace(",", "").replace(" ", "").rstrip("-").lstrip("-")
    try:
        return Decimal(cleaned)
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {text!r}") from None


def find_reference(description: str) -> str | None:
    match = REFERENCE_PATTERN.search(description)
    return match.group(0) if match else None


class FormatParser(ABC):
    """Recognizes transaction lines of one bank statement layout."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Parser name for logging."""
        pass

    @abstractmethod
    def can_parse(self, line: str, context: ParsingContext) -> bool:
        pass

    @abstractmethod
    def parse(self, line: str, context: ParsingContext) -> ParsedTransaction | None:
        """Parse a line this parser claimed.

        Returns None when the line was consumed without producing a
        transaction.
        """
        pass


class ParserState(str, Enum):
    IDLE = "idle"
    ACCUMULATING = "accumulating"
    FLUSHED = "flushed"


class StatefulFormatParser(FormatParser):
    """A parser that builds one transaction from several lines.

    ``parse`` returns the previously pending transaction when a new one
    starts; ``finalize_parsing`` returns the last one.
    """

    @property
    @abstractmethod
    def state(self) -> ParserState:
        pass

    @abstractmethod
    def finalize_parsing(self) -> ParsedTransaction | None:
        pass

    @abstractmethod
    def reset(self) -> None:
        """Clear all pending state. Safe to call repeatedly."""
        pass
