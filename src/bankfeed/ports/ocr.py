"""OCR port - interface for OCR engines."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..domain.models import RawDocument


class OCRPort(ABC):
    """Interface for OCR processing."""

    @abstractmethod
    def recognize(self, image: Any) -> str:
        """Run OCR on a rendered page (in-memory image or image path)."""
        pass


class ExternalRasterizerPort(ABC):
    """Interface for an out-of-process PDF rasterizer."""

    @abstractmethod
    def rasterize(
        self, document: "RawDocument", dpi: int
    ) -> AbstractContextManager[list[Path]]:
        """Render every page to an image file.

        Yields page images in page order; the files are removed when the
        context exits. Raises ExternalToolUnavailable when the tool is
        missing, times out or fails.
        """
        pass
