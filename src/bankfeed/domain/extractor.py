"""Hybrid text-layer / OCR document extraction."""

import logging

from ..config import ExtractionConfig
from ..ports.pdf import TextLayerPort
from .budget import TimeBudget
from .errors import ExtractionFailure, TimeoutExceeded
from .metadata import MetadataCollector
from .models import ExtractionResult, ExtractionStrategy, QualityMetrics, RawDocument
from .ocr import OcrPipeline
from .quality import Action, assess, decide
from .reconstruct import reconstruct_lines

logger = logging.getLogger(__name__)


class DocumentExtractor:
    """Turns a statement PDF into ordered text lines plus metadata.

    Holds no per-document state; one instance may serve many documents.
    """

    def __init__(
        self,
        text_layer: TextLayerPort,
        ocr: OcrPipeline,
        config: ExtractionConfig | None = None,
    ) -> None:
        self.text_layer = text_layer
        self.ocr = ocr
        self.config = config or ExtractionConfig()

    def parse_document(self, document: RawDocument) -> ExtractionResult:
        """Extract lines, falling back to OCR when the text layer is poor.

        Raises ExtractionFailure when every strategy yields nothing and
        TimeoutExceeded when the time budget runs out before OCR.
        """
        budget = TimeBudget(self.config.time_budget_seconds)
        collector = MetadataCollector()
        metrics: QualityMetrics | None = None

        fast = self._fast_path(document)
        if fast is not None:
            lines, strategy, metrics = fast
        else:
            lines, strategy = [], ExtractionStrategy.OCR

        if strategy == ExtractionStrategy.OCR:
            lines, strategy = self.ocr.extract(document, budget, collector)
        else:
            collector.feed_all(lines)

        if not lines:
            raise ExtractionFailure(document.filename)

        logger.info(
            f"Extracted {len(lines)} lines from {document.filename} via {strategy.value}"
        )
        return ExtractionResult(
            lines=lines,
            strategy=strategy,
            account_number=collector.account_number,
            statement_period_raw=collector.statement_period_raw,
            metrics=metrics,
        )

    def _fast_path(
        self, document: RawDocument
    ) -> tuple[list[str], ExtractionStrategy, QualityMetrics] | None:
        """Read the text layer and decide whether it is usable.

        Returns None when the text layer cannot be read at all.
        """
        if not self.text_layer.is_available():
            logger.warning("Text layer backend unavailable, using OCR")
            return None

        try:
            text = self.text_layer.extract_text(document)
        except (MemoryError, RecursionError, TimeoutExceeded):
            raise
        except Exception as e:
            logger.warning(f"Text layer extraction failed, using OCR: {e}")
            return None

        lines = [line.strip() for line in text.splitlines() if line.strip()]
        metrics = assess(lines, self.config.short_line_length)
        decision = decide(metrics, self.config)
        logger.info(
            f"Text layer: {metrics.total_lines} lines, "
            f"{metrics.short_line_ratio:.0%} short, {metrics.amount_hits} amounts, "
            f"{metrics.financial_terms} financial terms -> "
            f"{decision.action.value} ({decision.reason})"
        )

        if decision.action == Action.OCR:
            return lines, ExtractionStrategy.OCR, metrics

        if decision.action == Action.RECONSTRUCT:
            rebuilt = reconstruct_lines(lines, self.config.long_fragment_length)
            threshold = metrics.total_lines * self.config.reconstruction_keep_ratio
            logger.info(f"Reconstructed {len(lines)} fragments into {len(rebuilt)} lines")
            if len(rebuilt) < threshold:
                logger.info("Reconstruction failed to improve quality, using OCR")
                return lines, ExtractionStrategy.OCR, metrics
            return rebuilt, ExtractionStrategy.RECONSTRUCTED, metrics

        return lines, ExtractionStrategy.TEXT_LAYER, metrics
