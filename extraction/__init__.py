"""Extraction: OCR engine, preprocessing, token extraction and currency detection."""

from extraction.ocr import (
    create_ocr_engine,
    create_preprocessor,
    BaseOCREngine,
    BasePreprocessor,
    TesseractEngine,
)
from extraction.tokenizer import (
    detect_currency,
    extract,
    extract_numeric_tokens,
)

__all__ = [
    "create_ocr_engine",
    "create_preprocessor",
    "BaseOCREngine",
    "BasePreprocessor",
    "TesseractEngine",
    "detect_currency",
    "extract",
    "extract_numeric_tokens",
]
