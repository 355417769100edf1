"""OCR adapter using Tesseract via pytesseract."""

import logging
from pathlib import Path
from typing import Any

import pytesseract
from PIL import Image

from ...ports.ocr import OCRPort

logger = logging.getLogger(__name__)

# Assume a uniform block of text: statement tables read row by row
TESSERACT_CONFIG = "--oem 3 --psm 6"


class TesseractAdapter(OCRPort):
    """OCR implementation using Tesseract."""

    def __init__(self, language: str = "eng", tesseract_cmd: str | None = None) -> None:
        self.language = language
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    def recognize(self, image: Any) -> str:
        if isinstance(image, (str, Path)):
            with Image.open(image) as opened:
                return self._run(opened)
        return self._run(image)

    def _run(self, image: Image.Image) -> str:
        text = pytesseract.image_to_string(
            image, lang=self.language, config=TESSERACT_CONFIG
        )
        logger.debug(f"Tesseract returned {len(text)} chars")
        return text
