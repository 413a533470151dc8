"""
Extraction service: raw text or image -> tokens + currency, with guardrail statuses.
Implements IExtractionService. "No amounts" and "low OCR confidence" are returned as data;
OCR failures and empty OCR text raise.
"""

from __future__ import annotations

import logging

from core.exceptions import ExtractionError, NoTextDetectedError, OCRError
from core.interfaces import IExtractionService, IOCRService
from core.models import CurrencyCode, PipelineStatus, TokenExtractionResult
from extraction.tokenizer import extract
from utils.logger import log_structured

logger = logging.getLogger(__name__)

DEFAULT_MIN_OCR_CONFIDENCE = 0.5


class ExtractionService(IExtractionService):
    """Step 1 of the pipeline. OCR is injected; text input needs no OCR service."""

    def __init__(
        self,
        ocr_service: IOCRService | None = None,
        *,
        min_ocr_confidence: float = DEFAULT_MIN_OCR_CONFIDENCE,
        default_currency: CurrencyCode = CurrencyCode.INR,
    ) -> None:
        self._ocr = ocr_service
        self._min_ocr_confidence = min_ocr_confidence
        self._default_currency = default_currency

    def extract_from_text(self, text: str, trace_id: str = "") -> TokenExtractionResult:
        log_structured(logger, logging.INFO, "Processing text input", trace_id=trace_id)
        return self._tokenize(text, 1.0, from_ocr=False, trace_id=trace_id)

    def extract_from_image(self, image_bytes: bytes, trace_id: str = "") -> TokenExtractionResult:
        if self._ocr is None:
            raise OCRError("No OCR service configured for image input", trace_id=trace_id)
        log_structured(logger, logging.INFO, "Starting OCR text extraction", trace_id=trace_id)
        try:
            text, confidence = self._ocr.recognize(image_bytes)
        except OCRError:
            raise
        except Exception as e:
            raise OCRError(f"OCR failed: {e}", trace_id=trace_id) from e
        if not text or not text.strip():
            logger.warning("No text detected in image", extra={"trace_id": trace_id})
            raise NoTextDetectedError(trace_id=trace_id)
        return self._tokenize(text, float(confidence), from_ocr=True, trace_id=trace_id)

    def _tokenize(self, text: str, confidence: float, *, from_ocr: bool, trace_id: str) -> TokenExtractionResult:
        try:
            result = extract(text, self._default_currency)
        except Exception as e:
            raise ExtractionError(f"Failed to extract amounts from text: {e}", trace_id=trace_id) from e

        if not result.tokens:
            logger.warning("No numeric amounts found", extra={"trace_id": trace_id})
            where = "document" if from_ocr else "provided text"
            return TokenExtractionResult(
                tokens=(),
                currency=result.currency,
                raw_text=text,
                confidence=round(confidence, 2),
                status=PipelineStatus.NO_AMOUNTS_FOUND,
                reason=f"No numeric values found in the {where}",
            )

        if from_ocr and confidence < self._min_ocr_confidence:
            log_structured(
                logger,
                logging.WARNING,
                "OCR confidence below threshold",
                trace_id=trace_id,
                confidence=confidence,
                threshold=self._min_ocr_confidence,
            )
            return TokenExtractionResult(
                tokens=result.tokens,
                currency=result.currency,
                raw_text=text,
                confidence=round(confidence, 2),
                status=PipelineStatus.LOW_CONFIDENCE,
                reason="Document quality too poor or text too noisy",
            )

        log_structured(
            logger,
            logging.INFO,
            "Token extraction successful",
            trace_id=trace_id,
            tokens_found=len(result.tokens),
            currency=result.currency.value,
            confidence=confidence,
        )
        return TokenExtractionResult(
            tokens=result.tokens,
            currency=result.currency,
            raw_text=text,
            confidence=round(confidence, 2),
        )
