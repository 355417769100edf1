"""External rasterizer adapter using poppler's pdftoppm."""

import logging
import re
import shutil
import subprocess
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from ...domain.errors import ExternalToolUnavailable
from ...domain.models import RawDocument
from ...ports.ocr import ExternalRasterizerPort

logger = logging.getLogger(__name__)

PAGE_NUMBER = re.compile(r"-(\d+)$")


def page_images(directory: Path) -> list[Path]:
    """Rasterized page files in page order (page-1, page-2, ..., page-10)."""
    images = [
        p
        for p in directory.iterdir()
        if p.name.startswith("page") and p.suffix.lower() in (".jpg", ".jpeg", ".png")
    ]

    def page_number(path: Path) -> int:
        match = PAGE_NUMBER.search(path.stem)
        return int(match.group(1)) if match else 0

    return sorted(images, key=page_number)


class PdftoppmAdapter(ExternalRasterizerPort):
    """Renders pages out of process when the in-process renderer is broken."""

    def __init__(
        self,
        command: str = "pdftoppm",
        image_format: str = "jpeg",
        timeout: float = 60.0,
    ) -> None:
        self.command = command
        self.image_format = image_format
        self.timeout = timeout

    def is_available(self) -> bool:
        return shutil.which(self.command) is not None

    @contextmanager
    def rasterize(self, document: RawDocument, dpi: int) -> Iterator[list[Path]]:
        if not self.is_available():
            raise ExternalToolUnavailable(self.command)

        with tempfile.TemporaryDirectory(prefix="pdf_raster_") as tmp:
            workdir = Path(tmp)
            source = workdir / "input.pdf"
            source.write_bytes(document.content)

            logger.info(f"Rasterizing {document.filename} with {self.command} at {dpi} DPI")
            try:
                subprocess.run(
                    [
                        self.command,
                        f"-{self.image_format}",
                        "-r", str(dpi),
                        str(source),
                        str(workdir / "page"),
                    ],
                    check=True,
                    capture_output=True,
                    timeout=self.timeout,
                )
            except subprocess.TimeoutExpired as e:
                raise ExternalToolUnavailable(
                    self.command, f"timed out after {self.timeout:.0f}s"
                ) from e
            except subprocess.CalledProcessError as e:
                stderr = e.stderr.decode(errors="replace").strip() if e.stderr else ""
                raise ExternalToolUnavailable(
                    self.command, f"exit code {e.returncode}: {stderr}"
                ) from e
            except FileNotFoundError as e:
                raise ExternalToolUnavailable(self.command) from e

            yield page_images(workdir)
