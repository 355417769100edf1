"""PDF ports - text layer and page rendering."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..domain.models import RawDocument


class TextLayerPort(ABC):
    """Interface for reading a PDF's embedded text layer."""

    @abstractmethod
    def extract_text(self, document: "RawDocument") -> str:
        """Return the concatenated text of all pages, newline separated."""
        pass

    def is_available(self) -> bool:
        """Whether the backend can be used at all."""
        return True


class RasterizerPort(ABC):
    """Interface for rendering PDF pages to images in-process."""

    @abstractmethod
    def page_count(self, document: "RawDocument") -> int:
        """Open the document and return its number of pages.

        Raises RenderSubsystemError when the renderer cannot initialize.
        """
        pass

    @abstractmethod
    def render_page(self, document: "RawDocument", page_index: int, dpi: int) -> Any:
        """Render one page to an image the OCR engine accepts.

        Raises RenderSubsystemError when the font or image subsystem is
        broken, any other exception for a page-local failure.
        """
        pass
