"""
Document storage and content extraction.

Stores uploaded files under UPLOAD_DIR as ``{document_id}_{filename}``,
pulls the text layer out of PDFs (pdfplumber first, PyPDF2 as fallback),
decides whether a PDF is scanned, and renders scanned pages or photos into
images a vision model can read (PyMuPDF + Pillow).
"""

import hashlib
import io
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Union

import fitz  # PyMuPDF
import pdfplumber
import PyPDF2
from PIL import Image, ImageOps

from yuki.core.config import settings
from yuki.core.exceptions import UnsupportedFileError, ValidationError
from yuki.services.providers.base import ImageInput

logger = logging.getLogger(__name__)

TEXT_EXTENSIONS = ("csv", "txt")
IMAGE_EXTENSIONS = ("png", "jpeg", "jpg", "webp")
SUPPORTED_EXTENSIONS = ("pdf",) + TEXT_EXTENSIONS + IMAGE_EXTENSIONS

MAX_IMAGE_SIDE = 2048


@dataclass
class TextExtraction:
    text: str
    is_scanned: bool


def file_extension(filename: str) -> str:
    """Lowercase extension without the dot; raises UnsupportedFileError for unknown types."""
    ext = Path(filename or "").suffix.lower().lstrip(".")
    if ext not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFileError(ext or "(none)")
    return ext


def file_hash(content: bytes) -> str:
    return hashlib.sha256(content).hexdigest()


def is_image(extension: str) -> bool:
    return extension in IMAGE_EXTENSIONS


def looks_scanned(text: str, min_chars: int = None, min_words: int = None) -> bool:
    """A text layer this small means the PDF is a scan."""
    min_chars = settings.SCANNED_PDF_MIN_CHARS if min_chars is None else min_chars
    min_words = settings.SCANNED_PDF_MIN_WORDS if min_words is None else min_words
    trimmed = (text or "").strip()
    return len(trimmed) < min_chars or len(trimmed.split()) < min_words


class DocumentStorage:
    """File storage collaborator for the upload pipeline."""

    def __init__(self, upload_dir: Union[str, Path] = None):
        self.upload_dir = Path(upload_dir or settings.UPLOAD_DIR)

    def save(self, content: bytes, document_id: str, filename: str) -> str:
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        safe_name = Path(filename).name
        path = self.upload_dir / f"{document_id}_{safe_name}"
        path.write_bytes(content)
        logger.info(f"Stored {safe_name} ({len(content)} bytes) at {path}")
        return str(path)

    def delete(self, path: str) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            logger.warning(f"Stored file already missing: {path}")

    def read(self, path: str) -> bytes:
        return Path(path).read_bytes()

    def extract_text(self, source: Union[str, Path, bytes]) -> TextExtraction:
        """Extract the text layer of a PDF and flag it as scanned when it is too thin."""
        content = source if isinstance(source, bytes) else self.read(str(source))
        text = self._pdf_text(content)
        scanned = looks_scanned(text)
        logger.info(f"PDF text layer: {len(text)} chars, scanned={scanned}")
        return TextExtraction(text=text, is_scanned=scanned)

    def read_text_file(self, path: str) -> str:
        return self.read(path).decode("utf-8", errors="replace")

    def _pdf_text(self, content: bytes) -> str:
        try:
            with pdfplumber.open(io.BytesIO(content)) as pdf:
                text_content = ""
                for page in pdf.pages:
                    tables = page.extract_tables()
                    if tables:
                        for table in tables:
                            for row in table:
                                if row and any(cell and cell.strip() for cell in row):
                                    # Keep row structure with | delimiters
                                    text_content += " | ".join(str(cell).strip() if cell else "" for cell in row) + "\n"
                    else:
                        page_text = page.extract_text()
                        if page_text:
                            text_content += page_text + "\n"
                return text_content.encode("utf-8", errors="ignore").decode("utf-8")
        except Exception as e:
            logger.warning(f"pdfplumber failed ({e}), falling back to PyPDF2")

        try:
            pdf_reader = PyPDF2.PdfReader(io.BytesIO(content))
            text_content = ""
            for page in pdf_reader.pages:
                page_text = page.extract_text()
                if page_text:
                    text_content += page_text.encode("utf-8", errors="ignore").decode("utf-8") + "\n"
            return text_content
        except Exception as e:
            raise ValidationError("Could not read PDF", details=str(e), error_code="unreadable_pdf")

    def load_vision_images(self, path: str, extension: str) -> List[ImageInput]:
        """Images for a vision call: rendered PDF pages or the normalized photo."""
        content = self.read(path)
        if extension == "pdf":
            return self._render_pdf_pages(content)
        return [self._normalize_photo(content)]

    def _render_pdf_pages(self, content: bytes) -> List[ImageInput]:
        try:
            doc = fitz.open(stream=content, filetype="pdf")
        except Exception as e:
            raise ValidationError("Could not open PDF for rendering", details=str(e), error_code="unreadable_pdf")

        images = []
        try:
            # Render first N pages to control token/cost
            for i in range(min(settings.MAX_VISION_PAGES, len(doc))):
                page = doc.load_page(i)
                pix = page.get_pixmap(dpi=settings.VISION_DPI)
                images.append(ImageInput(data=pix.tobytes("png"), media_type="image/png"))
        finally:
            doc.close()

        if not images:
            raise ValidationError("PDF has no pages to render", error_code="empty_pdf")
        logger.info(f"Rendered {len(images)} PDF pages for vision")
        return images

    def _normalize_photo(self, content: bytes) -> ImageInput:
        try:
            img = Image.open(io.BytesIO(content))
            # Phone photos carry their rotation in EXIF
            img = ImageOps.exif_transpose(img)
        except Exception as e:
            raise ValidationError("Could not read image", details=str(e), error_code="unreadable_image")

        img.thumbnail((MAX_IMAGE_SIDE, MAX_IMAGE_SIDE))
        buffer = io.BytesIO()
        if img.mode in ("RGBA", "LA", "P"):
            img.save(buffer, format="PNG")
            return ImageInput(data=buffer.getvalue(), media_type="image/png")
        img.convert("RGB").save(buffer, format="JPEG", quality=90)
        return ImageInput(data=buffer.getvalue(), media_type="image/jpeg")
