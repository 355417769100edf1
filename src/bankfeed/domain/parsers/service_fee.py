"""Bank service fee lines."""

import re

from ..models import ParsedTransaction, ParsingContext, TransactionKind
from .base import FormatParser, parse_amount

_HEADER_WORDS = r"(?:Fee|Debits|Credits|Date|Balance)"
_COLUMN_WORDS = r"(?:Date|Details?|Description|Amount|Debit|Credit|Balance|Reference|Fee)"
TABLE_HEADER_PATTERN = re.compile(rf".*{_HEADER_WORDS}.*{_HEADER_WORDS}.*")
COLUMN_HEADER_PATTERN = re.compile(rf"^\s*{_COLUMN_WORDS}(?:\s+{_COLUMN_WORDS})*\s*$")
TRAILING_AMOUNT_PATTERN = re.compile(r"(?:\d+\.\d{2}-?\s*(?:##)?|##\s*\d+\.\d{2}-?)\s*$")
FEE_PATTERN = re.compile(
    r"^(.*?)\s*([\d,]*\d\.\d{2})-\s*(?:##)?\s*$|^(.*?)\s*##\s*([\d,]*\d\.\d{2})-?\s*$"
)
UNSIGNED_FEE_PATTERN = re.compile(r"^(.*?)\s*([\d,]*\d\.\d{2})\s*$")


class ServiceFeeParser(FormatParser):
    """Lines marked ``##`` or mentioning a fee, ending in an amount."""

    @property
    def name(self) -> str:
        return "service-fee"

    def can_parse(self, line: str, context: ParsingContext) -> bool:
        if "##" not in line and "FEE" not in line.upper():
            return False
        if TABLE_HEADER_PATTERN.match(line) or COLUMN_HEADER_PATTERN.match(line):
            return False
        return bool(TRAILING_AMOUNT_PATTERN.search(line))

    def parse(self, line: str, context: ParsingContext) -> ParsedTransaction | None:
        text = line.strip()
        match = FEE_PATTERN.match(text)
        if match:
            description = match.group(1) if match.group(2) else match.group(3)
            amount = match.group(2) or match.group(4)
        else:
            match = UNSIGNED_FEE_PATTERN.match(text)
            if not match:
                raise ValueError(f"No fee amount in line: {line}")
            description, amount = match.group(1), match.group(2)

        description = description.replace("##", "").strip() or "Service fee"
        return ParsedTransaction(
            date=context.statement_date,
            description=description,
            amount=parse_amount(amount),
            kind=TransactionKind.SERVICE_FEE,
            reference="FEE",
        )
