"""Cleanup of common OCR misreads in statement text."""

import re

NUMBER_WORDS = {
    "zero": "0",
    "one": "1",
    "two": "2",
    "three": "3",
    "four": "4",
    "five": "5",
    "six": "6",
    "seven": "7",
    "eight": "8",
    "nine": "9",
}

_NUMERIC_TOKEN = re.compile(r"(?<![A-Za-z])[\dIlO][\dIlO,.]*(?![A-Za-z])")
_DIGIT_LOOKALIKES = str.maketrans({"I": "1", "l": "1", "O": "0"})
_NUMBER_WORD = re.compile(r"\b(" + "|".join(NUMBER_WORDS) + r")\b", re.IGNORECASE)
_DASHED_DATE = re.compile(r"\b(\d{1,2})\s*[\u2013\u2014]\s*(\d{1,2})\s*[\u2013\u2014]\s*(\d{4})\b")


def _fix_lookalikes(match: re.Match) -> str:
    token = match.group(0)
    if not any(c.isdigit() for c in token):
        return token
    return token.translate(_DIGIT_LOOKALIKES)


def clean_ocr_errors(text: str) -> str:
    """Fix misread digits, spelled-out numbers and dash-separated dates.

    Letter lookalikes (I, l, O) are only replaced inside tokens that already
    contain a digit, so ordinary words are left alone.
    """
    text = _NUMERIC_TOKEN.sub(_fix_lookalikes, text)
    text = _NUMBER_WORD.sub(lambda m: NUMBER_WORDS[m.group(1).lower()], text)
    return _DASHED_DATE.sub(r"\1/\2/\3", text)
