"""Custom exceptions for the amount extraction pipeline. No generic Exception usage."""

from __future__ import annotations


class AmountExtractionError(Exception):
    """Base exception for pipeline failures."""

    code = "processing_failed"

    def __init__(self, message: str, trace_id: str | None = None) -> None:
        self.trace_id = trace_id or ""
        super().__init__(message)


class InvalidInputError(AmountExtractionError):
    """Caller supplied no input, both inputs, or input failing type/size checks."""

    def __init__(self, message: str, code: str = "invalid_input", trace_id: str | None = None) -> None:
        super().__init__(message, trace_id=trace_id)
        self.code = code


class NoTextDetectedError(InvalidInputError):
    """OCR returned no text for the supplied image."""

    def __init__(self, message: str = "No text detected in the provided image", trace_id: str | None = None) -> None:
        super().__init__(message, code="no_text_detected", trace_id=trace_id)


class OCRError(AmountExtractionError):
    """OCR extraction failed."""

    code = "ocr_failed"


class ExtractionError(AmountExtractionError):
    """Token extraction or currency detection failed unexpectedly."""

    code = "step1_failed"


class NormalizationError(AmountExtractionError):
    """Token normalization failed unexpectedly."""

    code = "step2_failed"


class ClassificationError(AmountExtractionError):
    """Amount classification failed unexpectedly."""

    code = "step3_failed"


class ConfigError(AmountExtractionError):
    """Invalid or missing configuration."""

    code = "config_error"
