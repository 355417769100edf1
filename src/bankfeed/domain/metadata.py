"""Statement metadata found in extracted lines."""

import re

ACCOUNT_PATTERN = re.compile(r"Account(?:\s+Number)?\s*:\s*([0-9][0-9\s-]*)", re.IGNORECASE)
PERIOD_PATTERN = re.compile(
    r"(\d{1,2}\s+[A-Za-z]{3,9}\s+\d{4})\s+to\s+(\d{1,2}\s+[A-Za-z]{3,9}\s+\d{4})"
    r"|(\d{1,2}/\d{1,2}/\d{4})\s+to\s+(\d{1,2}/\d{1,2}/\d{4})",
    re.IGNORECASE,
)


class MetadataCollector:
    """Accumulates account number and statement period for one document.

    The first match for each field wins. A collector is created per
    ``parse_document`` call and discarded with it.
    """

    def __init__(self) -> None:
        self.account_number: str | None = None
        self.statement_period_raw: str | None = None

    def feed(self, line: str) -> None:
        if self.account_number is None:
            match = ACCOUNT_PATTERN.search(line)
            if match:
                number = re.sub(r"\s+", "", match.group(1)).strip("-")
                if number:
                    self.account_number = number

        if self.statement_period_raw is None:
            match = PERIOD_PATTERN.search(line)
            if match:
                self.statement_period_raw = match.group(0)

    def feed_all(self, lines: list[str]) -> None:
        for line in lines:
            self.feed(line)
