"""Merge fragmented text-layer lines into logical transaction lines."""

import re

LINE_STARTERS = (
    "Balance", "Opening", "Closing", "Transaction", "Date",
    "Description", "Amount", "Debit", "Credit", "Transfer", "Payment",
    "Deposit", "Withdrawal", "Fee", "Charge", "Interest", "Dividend",
    "Salary", "ATM", "EFT", "Cheque", "Statement", "Account", "Branch",
    "VAT", "Page", "Total",
)

_STARTERS = "|".join(LINE_STARTERS)
STARTER_PATTERN = re.compile(
    rf"^(?:{_STARTERS})\b|\b(?:{_STARTERS}) ", re.IGNORECASE
)

_DATE = (
    r"\d{1,2}[/\-]\d{1,2}[/\-]\d{2,4}"
    r"|\d{1,2}\s+[A-Za-z]{3,9}\s+\d{4}"
    r"|\d{4}-\d{1,2}-\d{1,2}"
)
LEADING_DATE_PATTERN = re.compile(rf"^(?:{_DATE})(?:\s|$)")
DATE_ONLY_PATTERN = re.compile(rf"^(?:{_DATE})$")

AMOUNT_FRAGMENT_PATTERN = re.compile(r"^[\d,]*\d\.\d{2}-?$")
AMOUNT_TOKEN_PATTERN = re.compile(r"(?<![\d.])[\d,]*\d\.\d{2}-?(?![\d])")

BOILERPLATE_PATTERN = re.compile(
    r"page|statement|account summary|opening balance|closing balance",
    re.IGNORECASE,
)
DECIMAL_AMOUNT_PATTERN = re.compile(r"\d+\.\d{2}")
TRANSACTION_KEYWORD_PATTERN = re.compile(
    r"transfer|payment|fee|charge|deposit|withdrawal|debit|credit|atm|eft"
    r"|salary|interest|dividend",
    re.IGNORECASE,
)
TRAILING_AMOUNT_PATTERN = re.compile(r"\s[\d,]*\d\.\d{2}-?$")

NO_SPACE_PREFIXES = (",", ".", "-", ")")


def is_transaction(line: str) -> bool:
    """Heuristic: does this line look like a transaction row?

    Header and summary boilerplate is rejected even when it carries an amount.
    """
    if BOILERPLATE_PATTERN.search(line):
        return False
    if DECIMAL_AMOUNT_PATTERN.search(line):
        return True
    if TRANSACTION_KEYWORD_PATTERN.search(line):
        return True
    return bool(TRAILING_AMOUNT_PATTERN.search(line))


def _starts_new_line(fragment: str, buffer: str, long_fragment_length: int) -> bool:
    if LEADING_DATE_PATTERN.match(fragment):
        return True
    if AMOUNT_FRAGMENT_PATTERN.match(fragment):
        # debit/credit then balance; a third amount belongs to the next row
        return len(AMOUNT_TOKEN_PATTERN.findall(buffer)) >= 2
    if STARTER_PATTERN.search(fragment):
        # a lone date is still waiting for its description
        return not DATE_ONLY_PATTERN.match(buffer)
    return len(fragment) > long_fragment_length


def reconstruct_lines(fragments: list[str], long_fragment_length: int = 80) -> list[str]:
    """Fold text-layer fragments into transaction lines.

    Example::

        >>> reconstruct_lines(["01/02/2024", "Payment to ABC", "100.00", "500.00"])
        ['01/02/2024 Payment to ABC 100.00 500.00']
    """
    lines: list[str] = []
    buffer = ""

    def flush() -> None:
        if buffer and is_transaction(buffer):
            lines.append(buffer)

    for raw in fragments:
        fragment = raw.strip()
        if not fragment:
            continue
        if not buffer:
            buffer = fragment
        elif _starts_new_line(fragment, buffer, long_fragment_length):
            flush()
            buffer = fragment
        elif fragment.startswith(NO_SPACE_PREFIXES):
            buffer += fragment
        else:
            buffer += " " + fragment

    flush()
    return lines
