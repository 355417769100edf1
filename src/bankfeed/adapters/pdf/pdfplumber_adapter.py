"""PDF adapter using pdfplumber."""

import io
import logging

import pdfplumber
from PIL import Image

from ...domain.errors import RenderSubsystemError
from ...domain.models import RawDocument
from ...ports.pdf import RasterizerPort, TextLayerPort

logger = logging.getLogger(__name__)


class PdfPlumberAdapter(TextLayerPort, RasterizerPort):
    """Text layer extraction and page rendering with pdfplumber."""

    def extract_text(self, document: RawDocument) -> str:
        pages = []
        with pdfplumber.open(io.BytesIO(document.content)) as pdf:
            for number, page in enumerate(pdf.pages, start=1):
                text = page.extract_text() or ""
                logger.debug(f"Text layer page {number}: {len(text)} chars")
                pages.append(text)
        return "\n".join(pages)

    def page_count(self, document: RawDocument) -> int:
        try:
            with pdfplumber.open(io.BytesIO(document.content)) as pdf:
                return len(pdf.pages)
        except Exception as e:
            raise RenderSubsystemError(f"Cannot open PDF for rendering: {e}") from e

    def render_page(self, document: RawDocument, page_index: int, dpi: int) -> Image.Image:
        with pdfplumber.open(io.BytesIO(document.content)) as pdf:
            page = pdf.pages[page_index]
            image = page.to_image(resolution=dpi).original
            # detach from the closed document
            return image.convert("RGB")
