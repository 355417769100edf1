"""Text-layer quality assessment."""

import re
from dataclasses import dataclass
from enum import Enum

from ..config import ExtractionConfig
from .models import QualityMetrics

DATE_PATTERN = re.compile(r"\d{2}[/\-]\d{2}[/\-]\d{4}|\d{4}[/\-]\d{2}[/\-]\d{2}")
AMOUNT_PATTERN = re.compile(r"\$?\d+[,.]\d{2}")
FINANCIAL_TERM_PATTERN = re.compile(
    r"\b(credit|debit|deposit|withdrawal|transfer|payment|fee|balance|statement)\b",
    re.IGNORECASE,
)


class Action(str, Enum):
    ACCEPT = "accept"
    RECONSTRUCT = "reconstruct"
    OCR = "ocr"


@dataclass(frozen=True)
class Decision:
    action: Action
    reason: str


def assess(lines: list[str], short_line_length: int = 10) -> QualityMetrics:
    """Compute quality metrics over the non-empty lines of a text layer."""
    total = short = dates = amounts = terms = 0
    for line in lines:
        trimmed = line.strip()
        if not trimmed:
            continue
        total += 1
        if len(trimmed) < short_line_length:
            short += 1
        if DATE_PATTERN.search(trimmed):
            dates += 1
        if AMOUNT_PATTERN.search(trimmed):
            amounts += 1
        if FINANCIAL_TERM_PATTERN.search(trimmed):
            terms += 1
    return QualityMetrics(
        total_lines=total,
        short_lines=short,
        date_hits=dates,
        amount_hits=amounts,
        financial_terms=terms,
    )


def decide(metrics: QualityMetrics, config: ExtractionConfig) -> Decision:
    """Pick the extraction path for a text layer. First matching rule wins."""
    if metrics.total_lines == 0:
        return Decision(Action.OCR, "no text extracted")
    ratio = metrics.short_line_ratio
    if ratio > config.image_based_ratio:
        return Decision(
            Action.OCR, f"likely image-based ({ratio:.0%} short lines)"
        )
    if (
        metrics.amount_hits < config.min_amount_hits
        and metrics.financial_terms < config.min_financial_terms
    ):
        return Decision(Action.OCR, "insufficient financial content")
    if ratio > config.fragmented_ratio:
        return Decision(
            Action.RECONSTRUCT, f"fragmented text layer ({ratio:.0%} short lines)"
        )
    return Decision(Action.ACCEPT, "text layer looks complete")
