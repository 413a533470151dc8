"""
Amount extraction pipeline: single public method run(text=..., image=...) -> PipelineResult.
Flow: validate input -> extract tokens (+OCR) -> normalize -> classify -> filter + provenance.
All stage services injected via constructor; each stage is also callable on its own.
"""

from __future__ import annotations

import logging
import uuid
from typing import Sequence

from pydantic import ValidationError as PydanticValidationError

from core.exceptions import AmountExtractionError, InvalidInputError
from core.interfaces import (
    IClassificationService,
    IExtractionService,
    INormalizationService,
)
from core.models import (
    ALLOWED_OUTPUT_CATEGORIES,
    ClassificationResult,
    ClassifiedAmount,
    CurrencyCode,
    NormalizationResult,
    PipelineResult,
    PipelineStatus,
    TokenExtractionResult,
    ValidationOutcome,
)
from core.schema import DEFAULT_MAX_FILE_SIZE_MB, DEFAULT_MAX_TEXT_LENGTH, ExtractionRequest
from services.classification_service import find_source_line
from utils.logger import log_structured

logger = logging.getLogger(__name__)


def _input_error(e: PydanticValidationError, trace_id: str) -> InvalidInputError:
    """Map the first schema error to an input error code: invalid_text / invalid_file / invalid_input."""
    err = e.errors()[0]
    loc = err.get("loc") or ()
    message = str(err.get("msg", "Invalid input")).removeprefix("Value error, ")
    field = loc[0] if loc else ""
    code = {"text": "invalid_text", "image": "invalid_file", "mime_type": "invalid_file"}.get(str(field), "invalid_input")
    return InvalidInputError(message, code=code, trace_id=trace_id)


def filter_allowed(amounts: Sequence[ClassifiedAmount]) -> tuple[ClassifiedAmount, ...]:
    """Keep only categories exposed to callers (total_bill, paid, due), preserving order."""
    return tuple(a for a in amounts if a.category in ALLOWED_OUTPUT_CATEGORIES)


def attach_provenance(amounts: Sequence[ClassifiedAmount], raw_text: str) -> tuple[ClassifiedAmount, ...]:
    """Fill missing source snippets from raw_text; amounts that already carry one are kept as-is."""
    out: list[ClassifiedAmount] = []
    for a in amounts:
        if a.source_snippet is None and raw_text:
            line = find_source_line(raw_text, a.value)
            if line is not None:
                a = ClassifiedAmount(a.category, a.value, a.confidence, line)
        out.append(a)
    return tuple(out)


class AmountExtractionPipeline:
    """
    Production pipeline: run(text=..., image=...) -> PipelineResult.
    No state across invocations; concurrent runs need no coordination.
    """

    def __init__(
        self,
        extraction_service: IExtractionService,
        normalization_service: INormalizationService,
        classification_service: IClassificationService,
        *,
        max_text_length: int = DEFAULT_MAX_TEXT_LENGTH,
        max_file_size_mb: int = DEFAULT_MAX_FILE_SIZE_MB,
    ) -> None:
        self._extraction = extraction_service
        self._normalization = normalization_service
        self._classification = classification_service
        self._max_text_length = max_text_length
        self._max_file_size_mb = max_file_size_mb

    # ------------------------------------------------------------------
    # Individual stages
    # ------------------------------------------------------------------

    def validate_request(
        self,
        text: str | None = None,
        image: bytes | None = None,
        mime_type: str | None = None,
        trace_id: str = "",
    ) -> ExtractionRequest:
        """Exactly one of text/image, within size and type limits; raises InvalidInputError."""
        try:
            return ExtractionRequest.model_validate(
                {"text": text or None, "mime_type": mime_type, "image": image or None},
                context={
                    "max_text_length": self._max_text_length,
                    "max_file_size_mb": self._max_file_size_mb,
                },
            )
        except PydanticValidationError as e:
            raise _input_error(e, trace_id) from e

    def extract_tokens(
        self,
        text: str | None = None,
        image: bytes | None = None,
        mime_type: str | None = None,
        trace_id: str = "",
    ) -> TokenExtractionResult:
        """Step 1: tokens + currency hint, or a no_amounts_found / low_confidence status."""
        request = self.validate_request(text, image, mime_type, trace_id)
        if request.image is not None:
            return self._extraction.extract_from_image(request.image, trace_id)
        return self._extraction.extract_from_text(request.text or "", trace_id)

    def normalize(self, tokens: Sequence[str], trace_id: str = "") -> NormalizationResult:
        """Step 2: tokens -> amounts with normalization confidence."""
        return self._normalization.normalize(tokens, trace_id)

    def validate_amounts(self, amounts: Sequence[float]) -> ValidationOutcome:
        return self._normalization.validate(amounts)

    def classify(self, amounts: Sequence[float], raw_text: str, trace_id: str = "") -> ClassificationResult:
        """Step 3: every amount gets one category; consistency warnings are logged only."""
        result = self._classification.classify(amounts, raw_text, trace_id)
        report = self._classification.check_consistency(result.amounts)
        if not report.valid:
            log_structured(
                logger,
                logging.WARNING,
                f"Classification validation warnings: {'; '.join(report.warnings)}",
                trace_id=trace_id,
                warnings=list(report.warnings),
            )
        return result

    def finalize(
        self,
        currency: CurrencyCode | str,
        amounts: Sequence[ClassifiedAmount],
        raw_text: str = "",
    ) -> PipelineResult:
        """Step 4: allow-list filter, provenance, status ok."""
        return PipelineResult(
            status=PipelineStatus.OK,
            currency=CurrencyCode(currency),
            amounts=attach_provenance(filter_allowed(amounts), raw_text),
        )

    # ------------------------------------------------------------------
    # Fused run
    # ------------------------------------------------------------------

    def run(
        self,
        text: str | None = None,
        image: bytes | None = None,
        mime_type: str | None = None,
    ) -> PipelineResult:
        """
        Run all four stages. Guardrail outcomes short-circuit and come back as a
        PipelineResult with a non-ok status; input errors and stage failures raise.
        """
        trace_id = str(uuid.uuid4())
        log_structured(
            logger,
            logging.INFO,
            "Received extraction request",
            trace_id=trace_id,
            has_text=text is not None,
            has_image=image is not None,
        )
        try:
            return self._run(text, image, mime_type, trace_id)
        except AmountExtractionError:
            raise
        except Exception as e:
            logger.exception("Extraction pipeline failed", extra={"trace_id": trace_id})
            raise AmountExtractionError("Failed to process the request", trace_id=trace_id) from e

    def _run(self, text: str | None, image: bytes | None, mime_type: str | None, trace_id: str) -> PipelineResult:
        extraction = self.extract_tokens(text, image, mime_type, trace_id)
        if not extraction.ok:
            return PipelineResult(
                status=extraction.status,
                reason=extraction.reason,
                confidence=extraction.confidence if extraction.status is PipelineStatus.LOW_CONFIDENCE else None,
            )

        normalized = self.normalize(extraction.tokens, trace_id)
        outcome = self.validate_amounts(normalized.amounts)
        if not outcome.valid:
            log_structured(logger, logging.WARNING, "Normalized amounts rejected", trace_id=trace_id, reason=outcome.reason)
            return PipelineResult(status=PipelineStatus.INVALID_AMOUNTS, reason=outcome.reason)

        classified = self.classify(normalized.amounts, extraction.raw_text, trace_id)
        result = self.finalize(extraction.currency, classified.amounts, extraction.raw_text)
        log_structured(
            logger,
            logging.INFO,
            "Extraction pipeline completed successfully",
            trace_id=trace_id,
            amounts_extracted=len(result.amounts),
            status=result.status.value,
        )
        return result
