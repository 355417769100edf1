"""Single-line credit transactions."""

import re

from ..models import ParsedTransaction, ParsingContext, TransactionKind
from .base import FormatParser, find_reference, parse_amount

CREDIT_KEYWORDS = re.compile(
    r"\b(?:CREDIT|DEPOSIT|PAYMENT FROM|TRANSFER FROM|SALARY|INTEREST|REFUND)\b",
    re.IGNORECASE,
)
EXCLUDED = re.compile(r"\b(?:FEE|DEBIT|PAYMENT TO)\b|FEE-", re.IGNORECASE)
CREDIT_LINE_PATTERN = re.compile(r"^(.+?)\s+([\d,]+\.\d{2})\s*$")


class CreditTransactionParser(FormatParser):
    """``CREDIT TRANSFER FROM JOHN DOE 1,500.00`` style lines, dated with the statement date."""

    @property
    def name(self) -> str:
        return "credit"

    def can_parse(self, line: str, context: ParsingContext) -> bool:
        if EXCLUDED.search(line) or not CREDIT_KEYWORDS.search(line):
            return False
        return bool(CREDIT_LINE_PATTERN.match(line.strip()))

    def parse(self, line: str, context: ParsingContext) -> ParsedTransaction | None:
        match = CREDIT_LINE_PATTERN.match(line.strip())
        if not match:
            raise ValueError(f"Not a credit line: {line}")
        description = match.group(1).strip()
        return ParsedTransaction(
            date=context.statement_date,
            description=description,
            amount=parse_amount(match.group(2)),
            kind=TransactionKind.CREDIT,
            reference=find_reference(description),
        )
