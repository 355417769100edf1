"""OCR pipeline with external rasterizer fallback."""

import logging

from ..config import OcrConfig
from ..ports.ocr import ExternalRasterizerPort, OCRPort
from ..ports.pdf import RasterizerPort
from .budget import TimeBudget
from .errors import ExternalToolUnavailable, RenderSubsystemError, TimeoutExceeded
from .metadata import MetadataCollector
from .models import ExtractionStrategy, RawDocument
from .ocr_text import clean_ocr_errors

logger = logging.getLogger(__name__)

# Substrings of renderer errors caused by a broken font/image subsystem
RENDER_DEFECT_MARKERS = ("fontconfig", "font provider", "font mapper", "freetype")


def is_render_defect(exc: BaseException) -> bool:
    """Walk the exception chain looking for a render subsystem failure."""
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, RenderSubsystemError):
            return True
        message = str(current).lower()
        if any(marker in message for marker in RENDER_DEFECT_MARKERS):
            return True
        current = current.__cause__ or current.__context__
    return False


class OcrPipeline:
    """Renders pages and runs OCR on them, one page at a time."""

    def __init__(
        self,
        rasterizer: RasterizerPort,
        ocr: OCRPort,
        external: ExternalRasterizerPort,
        config: OcrConfig | None = None,
    ) -> None:
        self.rasterizer = rasterizer
        self.ocr = ocr
        self.external = external
        self.config = config or OcrConfig()

    def extract(
        self,
        document: RawDocument,
        budget: TimeBudget,
        collector: MetadataCollector,
    ) -> tuple[list[str], ExtractionStrategy]:
        """OCR every page of the document.

        Pipeline:
            1. Check the budget (raises before any rendering)
            2. Render and OCR each page, checking the budget per page
            3. On a render subsystem defect, hand over to the external
               rasterizer and OCR its images instead

        Returns the cleaned lines and the strategy that produced them.
        """
        budget.check("OCR start")
        lines: list[str] = []

        try:
            pages = self.rasterizer.page_count(document)
        except (MemoryError, RecursionError):
            raise
        except Exception as e:
            logger.warning(f"Page renderer failed to initialize: {e}")
            return self._external(document, budget, collector, lines)

        logger.info(f"OCR: {document.filename} ({pages} pages, {self.config.dpi} DPI)")

        for index in range(pages):
            try:
                budget.check(f"OCR page {index + 1}/{pages}")
            except TimeoutExceeded:
                if not lines:
                    raise
                logger.warning(f"Returning {len(lines)} lines from {index} pages")
                return lines, ExtractionStrategy.OCR

            try:
                image = self.rasterizer.render_page(document, index, self.config.dpi)
                text = self.ocr.recognize(image)
            except (MemoryError, RecursionError):
                raise
            except Exception as e:
                if is_render_defect(e):
                    logger.warning(
                        f"Render subsystem defect on page {index + 1}, "
                        f"switching to external rasterizer: {e}"
                    )
                    return self._external(document, budget, collector, lines)
                logger.warning(f"OCR failed on page {index + 1}: {e}")
                continue

            page_lines = self._clean(text, collector)
            logger.debug(f"Page {index + 1}: {len(page_lines)} lines")
            lines.extend(page_lines)

        logger.info(f"OCR complete: {len(lines)} lines")
        return lines, ExtractionStrategy.OCR

    def _external(
        self,
        document: RawDocument,
        budget: TimeBudget,
        collector: MetadataCollector,
        partial: list[str],
    ) -> tuple[list[str], ExtractionStrategy]:
        lines: list[str] = []
        try:
            with self.external.rasterize(document, self.config.dpi) as images:
                logger.info(f"External rasterizer produced {len(images)} images")
                for number, image in enumerate(images, start=1):
                    try:
                        budget.check(f"external OCR image {number}")
                    except TimeoutExceeded:
                        if not lines and not partial:
                            raise
                        break
                    try:
                        text = self.ocr.recognize(image)
                    except (MemoryError, RecursionError):
                        raise
                    except Exception as e:
                        logger.warning(f"OCR failed on image {number}: {e}")
                        continue
                    lines.extend(self._clean(text, collector))
        except ExternalToolUnavailable as e:
            logger.warning(f"External fallback unavailable: {e}")
        except TimeoutExceeded:
            raise
        except (MemoryError, RecursionError):
            raise
        except Exception as e:
            logger.exception(f"External fallback failed: {e}")

        if lines:
            logger.info(f"External OCR complete: {len(lines)} lines")
            return lines, ExtractionStrategy.EXTERNAL_OCR
        return partial, ExtractionStrategy.OCR

    def _clean(self, text: str, collector: MetadataCollector) -> list[str]:
        cleaned = []
        for raw in text.splitlines():
            line = raw.strip()
            if len(line) <= self.config.min_line_length:
                continue
            line = clean_ocr_errors(line)
            collector.feed(line)
            cleaned.append(line)
        return cleaned
