"""OCR adapters."""

from ...config import OcrConfig
from ...domain.ocr import OcrPipeline
from ...ports.pdf import RasterizerPort
from .pdftoppm_adapter import PdftoppmAdapter
from .tesseract_adapter import TesseractAdapter

__all__ = ["PdftoppmAdapter", "TesseractAdapter", "create_ocr_pipeline"]


def create_ocr_pipeline(config: OcrConfig, rasterizer: RasterizerPort) -> OcrPipeline:
    """Wire Tesseract and pdftoppm into an OCR pipeline."""
    return OcrPipeline(
        rasterizer=rasterizer,
        ocr=TesseractAdapter(language=config.language, tesseract_cmd=config.tesseract_cmd),
        external=PdftoppmAdapter(
            command=config.external_command,
            image_format=config.external_format,
            timeout=config.external_timeout_seconds,
        ),
        config=config,
    )
