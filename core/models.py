"""
Data models for the amount extraction pipeline.
Uses frozen dataclasses for stage results; Pydantic schemas (request/response) in core.schema.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class CurrencyCode(str, Enum):
    INR = "INR"
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"


class AmountCategory(str, Enum):
    """Semantic role of an amount on a bill. Exactly one per amount."""

    TOTAL_BILL = "total_bill"
    PAID = "paid"
    DUE = "due"
    DISCOUNT = "discount"
    TAX = "tax"
    CONSULTATION_FEE = "consultation_fee"
    MEDICINE_COST = "medicine_cost"
    LAB_TEST_COST = "lab_test_cost"
    ROOM_CHARGES = "room_charges"
    SUBTOTAL = "subtotal"
    OTHER = "other"


class PipelineStatus(str, Enum):
    OK = "ok"
    NO_AMOUNTS_FOUND = "no_amounts_found"
    LOW_CONFIDENCE = "low_confidence"
    INVALID_AMOUNTS = "invalid_amounts"


# Categories exposed to callers; the rest are internal
ALLOWED_OUTPUT_CATEGORIES: tuple[AmountCategory, ...] = (
    AmountCategory.TOTAL_BILL,
    AmountCategory.PAID,
    AmountCategory.DUE,
)

CONTEXT_NOT_FOUND = "(context not found)"


@dataclass(frozen=True)
class TokenExtractionResult:
    """Step 1 output: raw tokens, currency guess and guardrail status."""

    tokens: tuple[str, ...]
    currency: CurrencyCode
    raw_text: str = ""
    confidence: float = 1.0
    status: PipelineStatus = PipelineStatus.OK
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.status is PipelineStatus.OK

    def to_dict(self) -> dict[str, Any]:
        if not self.ok:
            out: dict[str, Any] = {"status": self.status.value, "reason": self.reason}
            if self.status is PipelineStatus.LOW_CONFIDENCE:
                out["confidence"] = self.confidence
            return out
        return {
            "raw_tokens": list(self.tokens),
            "currency_hint": self.currency.value,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class NormalizationResult:
    """Step 2 output: parsed amounts, ratio of successful parses, percentages seen."""

    amounts: tuple[float, ...]
    confidence: float
    percentages: tuple[float, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "normalized_amounts": list(self.amounts),
            "normalization_confidence": self.confidence,
            "percentages": list(self.percentages),
        }


@dataclass(frozen=True)
class ValidationOutcome:
    valid: bool
    reason: str = ""


@dataclass(frozen=True)
class ClassifiedAmount:
    category: AmountCategory
    value: float
    confidence: float
    source_snippet: str | None = None

    def source(self) -> str:
        """Provenance as rendered in the final response."""
        if self.source_snippet:
            return f"text: '{self.source_snippet}'"
        return f"text: {CONTEXT_NOT_FOUND}"


@dataclass(frozen=True)
class ClassificationResult:
    amounts: tuple[ClassifiedAmount, ...]
    confidence: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "amounts": [
                {
                    "type": a.category.value,
                    "value": a.value,
                    "confidence": a.confidence,
                    "source": a.source(),
                }
                for a in self.amounts
            ],
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class ConsistencyReport:
    """Advisory cross-field checks on classified amounts (total vs paid + due)."""

    valid: bool
    warnings: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class PipelineResult:
    """Final result of one pipeline invocation (single public output)."""

    status: PipelineStatus
    currency: CurrencyCode | None = None
    amounts: tuple[ClassifiedAmount, ...] = ()
    reason: str = ""
    confidence: float | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the response shape consumed downstream."""
        from core.schema import AmountSchema, ExtractionResponse, GuardrailResponse

        if self.status is not PipelineStatus.OK:
            return GuardrailResponse(
                status=self.status.value,
                reason=self.reason,
                confidence=self.confidence,
            ).model_dump(exclude_none=True)
        return ExtractionResponse(
            currency=self.currency.value if self.currency else "",
            amounts=[
                AmountSchema(type=a.category.value, value=a.value, source=a.source())
                for a in self.amounts
            ],
            status=self.status.value,
        ).model_dump()
