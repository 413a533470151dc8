"""
OCR extraction with a pluggable engine (Tesseract) and preprocessing providers.
BaseOCREngine + TesseractEngine; BasePreprocessor + NoOp / PIL.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import pytesseract
from PIL import Image, ImageEnhance, ImageFilter, ImageOps

from core.exceptions import OCRError

logger = logging.getLogger(__name__)

# psm 6: single uniform block, keeps bill lines together so keyword and amount share a line
TESSERACT_CONFIG = "--psm 6 --oem 3"
MIN_SIDE_PX = 300
SUPPORTED_ENGINES = ("tesseract",)


# ---------------------------------------------------------------------------
# Preprocessors
# ---------------------------------------------------------------------------


class BasePreprocessor(ABC):
    """Prepares a bill photo or scan before OCR."""

    @property
    def name(self) -> str:
        return "base"

    @abstractmethod
    def preprocess(self, image: Image.Image) -> Image.Image:
        """May return the input image unchanged."""
        ...


class NoOpPreprocessor(BasePreprocessor):
    @property
    def name(self) -> str:
        return "none"

    def preprocess(self, image: Image.Image) -> Image.Image:
        return image


class PILPreprocessor(BasePreprocessor):
    """Honour EXIF rotation, grayscale, upscale small photos, sharpen, boost contrast."""

    def __init__(self, contrast: float = 1.3) -> None:
        self._contrast = contrast

    @property
    def name(self) -> str:
        return "pil"

    def preprocess(self, image: Image.Image) -> Image.Image:
        image = ImageOps.exif_transpose(image)
        if image.mode != "L":
            image = image.convert("L")
        min_side = min(image.size)
        if 0 < min_side < MIN_SIDE_PX:
            scale = MIN_SIDE_PX / min_side
            image = image.resize(
                (max(MIN_SIDE_PX, int(image.width * scale)), max(MIN_SIDE_PX, int(image.height * scale))),
                Image.Resampling.LANCZOS,
            )
        image = image.filter(ImageFilter.SHARPEN)
        return ImageEnhance.Contrast(image).enhance(self._contrast)


# ---------------------------------------------------------------------------
# Engines
# ---------------------------------------------------------------------------


class BaseOCREngine(ABC):
    """Bill image in, (text, confidence in [0, 1]) out."""

    @property
    def name(self) -> str:
        return "base"

    @abstractmethod
    def run(self, image: Image.Image) -> tuple[str, float]:
        """Recognize all text on the bill."""
        ...


def mean_word_confidence(confidences: list[object]) -> float:
    """Tesseract reports per-word confidence 0-100 and -1 for non-word boxes; average the valid ones."""
    values: list[float] = []
    for c in confidences:
        try:
            v = float(c)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            continue
        if v >= 0:
            values.append(v)
    if not values:
        return 0.0
    return min(1.0, max(0.0, sum(values) / len(values) / 100.0))


class TesseractEngine(BaseOCREngine):
    """Tesseract OCR on a preprocessed image."""

    def __init__(
        self,
        lang: str = "eng",
        config: str = TESSERACT_CONFIG,
        preprocessor: BasePreprocessor | None = None,
    ) -> None:
        self._lang = lang
        self._config = config
        self._preprocessor = preprocessor or PILPreprocessor()

    @property
    def name(self) -> str:
        return "tesseract"

    @property
    def preprocessor(self) -> BasePreprocessor:
        return self._preprocessor

    def run(self, image: Image.Image) -> tuple[str, float]:
        image = self._preprocessor.preprocess(image)
        try:
            data = pytesseract.image_to_data(
                image, lang=self._lang, config=self._config, output_type=pytesseract.Output.DICT
            )
            text = pytesseract.image_to_string(image, lang=self._lang, config=self._config).strip()
        except pytesseract.TesseractNotFoundError as e:
            raise OCRError("tesseract binary not found; install tesseract-ocr") from e
        return text, mean_word_confidence(list(data.get("conf", [])))


# ---------------------------------------------------------------------------
# Factories (names come from the ocr config section)
# ---------------------------------------------------------------------------


def create_preprocessor(kind: str = "pil") -> BasePreprocessor:
    """kind: 'none' | 'pil'. Unknown kinds fall back to 'pil'."""
    k = (kind or "pil").strip().lower()
    if k == "none":
        return NoOpPreprocessor()
    return PILPreprocessor()


def create_ocr_engine(
    engine: str = "tesseract",
    *,
    lang: str = "eng",
    preprocessor: BasePreprocessor | None = None,
    preprocessor_kind: str = "pil",
) -> BaseOCREngine:
    """Create OCR engine by name."""
    e = (engine or "tesseract").strip().lower()
    if e not in SUPPORTED_ENGINES:
        raise OCRError(f"Unsupported OCR engine {engine!r}; expected one of {SUPPORTED_ENGINES}")
    prep = preprocessor or create_preprocessor(preprocessor_kind)
    eng = TesseractEngine(lang=lang, preprocessor=prep)
    logger.info("OCR: engine=%s, lang=%s, preprocessor=%s", eng.name, lang, prep.name)
    return eng
