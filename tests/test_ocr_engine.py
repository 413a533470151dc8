"""
OCR layer tests that need no Tesseract binary (pytesseract calls are stubbed):
confidence averaging, preprocessing, engine factory errors, OCRService with a fake engine.
"""
from __future__ import annotations

import io

import pytest
import pytesseract
from PIL import Image

from core.exceptions import OCRError
from extraction.ocr import (
    MIN_SIDE_PX,
    BaseOCREngine,
    NoOpPreprocessor,
    PILPreprocessor,
    TesseractEngine,
    create_ocr_engine,
    create_preprocessor,
    mean_word_confidence,
)
from services.ocr_service import OCRService


def _png_bytes(size: tuple[int, int] = (120, 60)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color="white").save(buf, format="PNG")
    return buf.getvalue()


class FakeOCREngine(BaseOCREngine):
    """Returns fixed text/confidence and records the image it was given."""

    def __init__(self, text: str, confidence: float) -> None:
        self.text = text
        self.confidence = confidence
        self.seen: list[Image.Image] = []

    def run(self, image: Image.Image) -> tuple[str, float]:
        self.seen.append(image)
        return self.text, self.confidence


class BrokenOCREngine(BaseOCREngine):
    def run(self, image: Image.Image) -> tuple[str, float]:
        raise RuntimeError("engine crashed")


# ---------------------------------------------------------------------------
# Engine helpers
# ---------------------------------------------------------------------------


def test_mean_word_confidence_ignores_non_words() -> None:
    assert mean_word_confidence(["90", "-1", 70, "x", -1]) == pytest.approx(0.8)
    assert mean_word_confidence([]) == 0.0
    assert mean_word_confidence(["-1"]) == 0.0


def test_pil_preprocessor_grayscale_and_upscale() -> None:
    out = PILPreprocessor().preprocess(Image.new("RGB", (100, 50), color="white"))
    assert out.mode == "L"
    assert min(out.size) >= MIN_SIDE_PX


def test_create_preprocessor() -> None:
    assert isinstance(create_preprocessor("none"), NoOpPreprocessor)
    assert isinstance(create_preprocessor("pil"), PILPreprocessor)


def test_unknown_engine_rejected() -> None:
    with pytest.raises(OCRError):
        create_ocr_engine("easyocr")


# ---------------------------------------------------------------------------
# OCRService
# ---------------------------------------------------------------------------


def test_service_returns_engine_output() -> None:
    engine = FakeOCREngine("Total: 1200", 0.87)
    text, confidence = OCRService(ocr_engine=engine).recognize(_png_bytes())
    assert text == "Total: 1200"
    assert confidence == 0.87
    assert engine.seen[0].mode == "RGB"


def test_service_clamps_confidence() -> None:
    _, confidence = OCRService(ocr_engine=FakeOCREngine("x", 1.7)).recognize(_png_bytes())
    assert confidence == 1.0


def test_undecodable_image_raises_ocr_error() -> None:
    with pytest.raises(OCRError):
        OCRService(ocr_engine=FakeOCREngine("x", 1.0)).recognize(b"\x89PNG\r\n\x1a\nnot really")


def test_engine_failure_wrapped() -> None:
    with pytest.raises(OCRError) as exc:
        OCRService(ocr_engine=BrokenOCREngine()).recognize(_png_bytes())
    assert isinstance(exc.value.__cause__, RuntimeError)


def test_unknown_engine_from_service() -> None:
    with pytest.raises(OCRError):
        OCRService("paddle")


def test_service_builds_engine_at_construction() -> None:
    svc = OCRService("tesseract", preprocessor="none")
    assert isinstance(svc.engine, TesseractEngine)
    assert isinstance(svc.engine.preprocessor, NoOpPreprocessor)


def test_requests_reuse_the_same_engine() -> None:
    engine = FakeOCREngine("Total: 1200", 0.9)
    svc = OCRService(ocr_engine=engine)
    svc.recognize(_png_bytes())
    svc.recognize(_png_bytes())
    assert svc.engine is engine
    assert len(engine.seen) == 2


# ---------------------------------------------------------------------------
# TesseractEngine (pytesseract calls stubbed)
# ---------------------------------------------------------------------------


def test_tesseract_engine_text_and_confidence(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(pytesseract, "image_to_data", lambda *a, **k: {"conf": ["90", "-1", "80"]})
    monkeypatch.setattr(pytesseract, "image_to_string", lambda *a, **k: "  Total: 1200\n")
    engine = TesseractEngine(preprocessor=NoOpPreprocessor())
    text, confidence = engine.run(Image.new("RGB", (10, 10)))
    assert text == "Total: 1200"
    assert confidence == pytest.approx(0.85)


def test_missing_tesseract_binary_is_ocr_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def not_found(*args, **kwargs):
        raise pytesseract.TesseractNotFoundError()

    monkeypatch.setattr(pytesseract, "image_to_data", not_found)
    svc = OCRService(ocr_engine=TesseractEngine(preprocessor=NoOpPreprocessor()))
    with pytest.raises(OCRError) as exc:
        svc.recognize(_png_bytes())
    assert isinstance(exc.value.__cause__, pytesseract.TesseractNotFoundError)
