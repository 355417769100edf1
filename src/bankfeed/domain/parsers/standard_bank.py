"""Standard Bank tabular statement parser."""

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from ..models import ParsedTransaction, ParsingContext, TransactionKind
from .base import ParserState, StatefulFormatParser, find_reference, parse_amount

logger = logging.getLogger(__name__)

# DESCRIPTION [AMOUNT[-]] MM DD BALANCE[-]
TRANSACTION_LINE_PATTERN = re.compile(
    r"^[A-Z][A-Z\s\-:]+.*\s+(\d{2})\s+(\d{2})\s+([\d,]+\.\d{2}-?)\s*$"
)
DEBIT_PATTERN = re.compile(r"(.+?)\s+([\d,]+\.\d{2}-)\s*$")
CREDIT_PATTERN = re.compile(r"(.+?)\s+([\d,]+\.\d{2})\s*$")
CONTINUATION_PATTERN = re.compile(r"^[A-Z0-9*][A-Z0-9\s*\-().:/#+]+$")
ADDRESS_PATTERN = re.compile(
    r"PO BOX|MARSHALLTOWN|DOORNFONTEIN|BRAAMFONTEIN|XINGHIZANA GROUP"
)
SKIP_PATTERN = re.compile(
    r"^\s*(?:Details\s+Service\s+Fee|DEBITS\s+CREDITS\s+DATE|"
    r"BRAAMFONTEIN|MARSHALLTOWN|BIZLAUNCH|Account Number|"
    r"Statement from|Statement No|VAT Reg|Page \d|Month-end Balance|"
    r"PO BOX|DOORNFONTEIN|XINGHIZANA GROUP\(PTY\)LTD|"
    r"BizDirect Contact Centre|e-mail:|\d+\s+\w+\s+\d{4}|"
    r"MONTHLY EMAIL VAT|Statement Frequency:|BANK STATEMENT)"
)
STATEMENT_HEADER_PATTERN = re.compile(
    r"Statement from (\d{1,2} \w+ \d{4}) to (\d{1,2} \w+ \d{4})"
)
SERVICE_FEE_MARKER = "##"


@dataclass
class _Pending:
    """A transaction line waiting for its continuation lines."""

    date: date
    description: str
    amount: Decimal
    kind: TransactionKind
    balance: Decimal
    continuations: list[str] = field(default_factory=list)

    def complete(self) -> ParsedTransaction:
        description = " ".join([self.description, *self.continuations]).strip()
        return ParsedTransaction(
            date=self.date,
            description=description,
            amount=self.amount,
            kind=self.kind,
            balance=self.balance,
            reference=find_reference(description),
        )


class StandardBankTabularParser(StatefulFormatParser):
    """Parses the columnar Standard Bank business statement layout.

    A transaction row ends in ``MM DD BALANCE``; the amount column before it
    carries a trailing ``-`` for debits. Uppercase lines directly after a
    row continue its description and are emitted with it when the next row
    starts or on ``finalize_parsing``.

    ``can_parse`` must be offered every line in document order: a line the
    parser does not claim closes the continuation window.
    """

    def __init__(self) -> None:
        self.reset()

    @property
    def name(self) -> str:
        return "standard-bank"

    @property
    def state(self) -> ParserState:
        return self._state

    def reset(self) -> None:
        self._pending: _Pending | None = None
        self._continuation_open = False
        self._period: tuple[date, date] | None = None
        self._state = ParserState.IDLE

    def can_parse(self, line: str, context: ParsingContext) -> bool:
        self._read_statement_header(line)

        if SKIP_PATTERN.match(line):
            self._continuation_open = False
            return False
        if TRANSACTION_LINE_PATTERN.match(line):
            self._continuation_open = True
            return True
        if self._continuation_open and self._is_continuation(line):
            return True
        self._continuation_open = False
        return False

    def parse(self, line: str, context: ParsingContext) -> ParsedTransaction | None:
        match = TRANSACTION_LINE_PATTERN.match(line)
        if match:
            completed = self._pending.complete() if self._pending else None
            self._pending = self._start(line, match, context)
            self._state = (
                ParserState.ACCUMULATING if self._pending else ParserState.FLUSHED
            )
            return completed

        if self._is_continuation(line) and self._pending:
            self._pending.continuations.append(line.strip())
        return None

    def finalize_parsing(self) -> ParsedTransaction | None:
        completed = self._pending.complete() if self._pending else None
        self._pending = None
        self._continuation_open = False
        self._state = ParserState.FLUSHED
        return completed

    def _is_continuation(self, line: str) -> bool:
        trimmed = line.strip()
        if not trimmed or TRANSACTION_LINE_PATTERN.match(line):
            return False
        if ADDRESS_PATTERN.search(trimmed):
            return False
        return bool(CONTINUATION_PATTERN.match(trimmed))

    def _start(
        self, line: str, match: re.Match, context: ParsingContext
    ) -> _Pending | None:
        month, day = int(match.group(1)), int(match.group(2))
        balance = parse_amount(match.group(3))
        if match.group(3).endswith("-"):
            balance = -balance
        body = line[: match.start(1)].rstrip()

        debit = DEBIT_PATTERN.match(body)
        if debit:
            details = debit.group(1).strip()
            amount = parse_amount(debit.group(2))
            kind = (
                TransactionKind.SERVICE_FEE
                if SERVICE_FEE_MARKER in details
                else TransactionKind.DEBIT
            )
        else:
            credit = CREDIT_PATTERN.match(body)
            if not credit:
                logger.debug(f"Row without amount column: {line}")
                return None
            details = credit.group(1).strip()
            amount = parse_amount(credit.group(2))
            kind = TransactionKind.CREDIT

        return _Pending(
            date=self._transaction_date(month, day, context),
            description=details,
            amount=amount,
            kind=kind,
            balance=balance,
        )

    def _read_statement_header(self, line: str) -> None:
        match = STATEMENT_HEADER_PATTERN.search(line)
        if not match:
            return
        try:
            start = datetime.strptime(match.group(1), "%d %B %Y").date()
            end = datetime.strptime(match.group(2), "%d %B %Y").date()
        except ValueError as e:
            logger.warning(f"Failed to parse statement header period: {e}")
            return
        self._period = (start, end)
        logger.debug(f"Statement header period: {start} to {end}")

    def _transaction_date(self, month: int, day: int, context: ParsingContext) -> date:
        if self._period is None:
            return date(context.statement_date.year, month, day)

        start, end = self._period
        candidates = [date(start.year, month, day)]
        if end.year != start.year:
            candidates.append(date(end.year, month, day))
        for candidate in candidates:
            if start <= candidate <= end:
                return candidate
        return min(candidates, key=lambda c: abs((c - start).days))
