"""Bank statement format parsers."""

from .base import FormatParser, ParserState, StatefulFormatParser
from .credit import CreditTransactionParser
from .fnb import FnbParser
from .service_fee import ServiceFeeParser
from .standard_bank import StandardBankTabularParser


def default_parsers() -> list[FormatParser]:
    """Single-line parsers in dispatch order."""
    return [FnbParser(), CreditTransactionParser(), ServiceFeeParser()]


__all__ = [
    "CreditTransactionParser",
    "FnbParser",
    "FormatParser",
    "ParserState",
    "ServiceFeeParser",
    "StandardBankTabularParser",
    "StatefulFormatParser",
    "default_parsers",
]
