"""FNB single-line statement parser."""

import re
from datetime import date, datetime
from decimal import Decimal

from ..models import ParsedTransaction, ParsingContext, TransactionKind
from .base import FormatParser, find_reference, parse_amount

_MONTHS = r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)"
FNB_LINE_PATTERN = re.compile(
    rf"^(?P<date>\d{{2}}/\d{{2}}/\d{{4}}|\d{{1,2}} {_MONTHS})\s+"
    r"(?P<description>.+?)\s+"
    r"(?P<amount>[\d,]+\.\d{2})(?P<credit>Cr)?"
    r"(?:\s+(?P<balance>[\d,]+\.\d{2})(?P<balance_sign>Cr|Dr)?)?\s*$"
)
BALANCE_LINE_PATTERN = re.compile(
    r"balance (?:brought|carried) forward|opening balance|closing balance",
    re.IGNORECASE,
)
FEE_PATTERN = re.compile(r"\bfee\b|^#", re.IGNORECASE)


class FnbParser(FormatParser):
    """Rows like ``02 Apr Magtape Credit Xinghlzana Group 7,500.00Cr 5,969.38Cr``.

    A ``Cr`` suffix on the amount marks a credit; everything else is a
    debit. Rows without a year take it from the statement date.
    """

    @property
    def name(self) -> str:
        return "fnb"

    def can_parse(self, line: str, context: ParsingContext) -> bool:
        match = FNB_LINE_PATTERN.match(line.strip())
        if not match:
            return False
        return not BALANCE_LINE_PATTERN.search(match.group("description"))

    def parse(self, line: str, context: ParsingContext) -> ParsedTransaction | None:
        match = FNB_LINE_PATTERN.match(line.strip())
        if not match:
            raise ValueError(f"Not an FNB row: {line}")

        description = match.group("description").strip()
        if match.group("credit"):
            kind = TransactionKind.CREDIT
        elif FEE_PATTERN.search(description):
            kind = TransactionKind.SERVICE_FEE
        else:
            kind = TransactionKind.DEBIT

        balance: Decimal | None = None
        if match.group("balance"):
            balance = parse_amount(match.group("balance"))
            if match.group("balance_sign") == "Dr":
                balance = -balance

        return ParsedTransaction(
            date=self._date(match.group("date"), context),
            description=description.lstrip("#").strip(),
            amount=parse_amount(match.group("amount")),
            kind=kind,
            balance=balance,
            reference=find_reference(description),
        )

    def _date(self, text: str, context: ParsingContext) -> date:
        if "/" in text:
            return datetime.strptime(text, "%d/%m/%Y").date()
        year = context.statement_date.year
        return datetime.strptime(f"{text} {year}", "%d %b %Y").date()
