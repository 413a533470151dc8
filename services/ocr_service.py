"""
OCR service: implements IOCRService using the extraction.ocr engine API.
Image bytes -> (text, confidence); engine and preprocessing come from config.
"""

from __future__ import annotations

import io
import logging

from PIL import Image, UnidentifiedImageError

from core.exceptions import OCRError
from core.interfaces import IOCRService
from core.schema import OCRExtractionResult
from extraction.ocr import BaseOCREngine, create_ocr_engine

logger = logging.getLogger(__name__)


def _load_image(data: bytes) -> Image.Image:
    try:
        with Image.open(io.BytesIO(data)) as img:
            return img.convert("RGB")
    except (UnidentifiedImageError, OSError) as e:
        raise OCRError(f"Could not decode image: {e}") from e


class OCRService(IOCRService):
    """
    Production OCR service: bytes -> (text, confidence).
    Engine is built once in __init__ and never reassigned.
    """

    def __init__(
        self,
        engine: str = "tesseract",
        *,
        lang: str = "eng",
        preprocessor: str = "pil",
        ocr_engine: BaseOCREngine | None = None,
    ) -> None:
        self._engine = ocr_engine or create_ocr_engine(
            engine,
            lang=lang,
            preprocessor_kind=preprocessor,
        )

    @property
    def engine(self) -> BaseOCREngine:
        return self._engine

    def recognize(self, image_bytes: bytes) -> tuple[str, float]:
        image = _load_image(image_bytes)
        try:
            text, confidence = self._engine.run(image)
        except OCRError:
            raise
        except Exception as e:
            raise OCRError(f"OCR from bytes failed: {e}") from e
        result = OCRExtractionResult(raw_text=text or "", confidence=min(1.0, max(0.0, float(confidence))))
        logger.info("OCR complete: %s chars, confidence %.3f", len(result.raw_text), result.confidence)
        return result.raw_text, result.confidence
