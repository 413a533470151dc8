"""
Classification: assign each amount a semantic category from the keyword context around it.
Implements IClassificationService. Rules are an ordered table of {category, patterns, weight};
a pattern only counts when its captured number equals the amount being classified.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Sequence

from core.exceptions import ClassificationError
from core.interfaces import IClassificationService
from core.models import (
    AmountCategory,
    ClassificationResult,
    ClassifiedAmount,
    ConsistencyReport,
)
from utils.logger import log_structured

logger = logging.getLogger(__name__)

OTHER_CONFIDENCE = 0.5
DEFAULT_CONSISTENCY_TOLERANCE = 1.0

# keyword phrase, optional separator, optional currency marker, captured number
_CURRENCY = r"(?:(?<![a-z])(?:rs\.?|inr|usd|eur|gbp)|₹|\$|€|£)?"
_NUMBER = r"(\d{1,3}(?:,\d{2,3})+(?:\.\d{1,2})?|\d+(?:\.\d{1,2})?)"


def _pattern(keyword: str) -> re.Pattern[str]:
    return re.compile(keyword + r"[:\s]*" + _CURRENCY + r"\s*" + _NUMBER, re.IGNORECASE | re.ASCII)


@dataclass(frozen=True)
class CategoryRule:
    category: AmountCategory
    patterns: tuple[re.Pattern[str], ...]
    weight: float


# Order matters: equal weights resolve to the earlier rule
CATEGORY_RULES: tuple[CategoryRule, ...] = (
    CategoryRule(
        AmountCategory.TOTAL_BILL,
        (
            _pattern(r"(?<!sub\s)(?<!sub-)\btotal\s*(?:bill|amount|charges?|cost)?"),
            _pattern(r"\b(?:grand|net)\s*total"),
            _pattern(r"\bbill\s*amount"),
            _pattern(r"\b(?:amount|net)\s*payable"),
        ),
        0.9,
    ),
    CategoryRule(
        AmountCategory.PAID,
        (
            _pattern(r"\b(?:amount\s*)?paid"),
            _pattern(r"\bpayment"),
            _pattern(r"\breceived"),
        ),
        0.9,
    ),
    CategoryRule(
        AmountCategory.DUE,
        (
            _pattern(r"\b(?:balance\s*)?due"),
            _pattern(r"\b(?:amount\s*)?outstanding"),
            _pattern(r"\bbalance"),
            _pattern(r"\bpending"),
        ),
        0.9,
    ),
    CategoryRule(
        AmountCategory.DISCOUNT,
        (
            _pattern(r"\bdiscount"),
            _pattern(r"\bconcession"),
            _pattern(r"\brebate"),
        ),
        0.85,
    ),
    CategoryRule(
        AmountCategory.TAX,
        (
            _pattern(r"\b(?:[csi]?gst|vat|tax)"),
            _pattern(r"\bservice\s*tax"),
        ),
        0.85,
    ),
    CategoryRule(
        AmountCategory.CONSULTATION_FEE,
        (
            _pattern(r"\bconsultation\s*(?:fees?|charges?)"),
            _pattern(r"\bdoctor\s*(?:fees?|charges?)"),
        ),
        0.8,
    ),
    CategoryRule(
        AmountCategory.MEDICINE_COST,
        (
            _pattern(r"\bmedicines?\s*(?:cost|charges?)?"),
            _pattern(r"\bpharmacy"),
            _pattern(r"\bdrugs?"),
        ),
        0.8,
    ),
    CategoryRule(
        AmountCategory.LAB_TEST_COST,
        (
            _pattern(r"\blab\s*(?:tests?|charges?)"),
            _pattern(r"\binvestigations?"),
            _pattern(r"\bdiagnostics?"),
        ),
        0.8,
    ),
    CategoryRule(
        AmountCategory.ROOM_CHARGES,
        (
            _pattern(r"\broom\s*(?:charges?|rent)"),
            _pattern(r"\bbed\s*charges?"),
            _pattern(r"\baccommodation"),
        ),
        0.8,
    ),
    CategoryRule(
        AmountCategory.SUBTOTAL,
        (_pattern(r"\bsub[-\s]*total"),),
        0.75,
    ),
)


def format_amount(value: float) -> str:
    """Shortest decimal string for an amount: 1200.0 -> "1200", 1200.5 -> "1200.5"."""
    if value == int(value):
        return str(int(value))
    return repr(value)


def _amount_strings(value: float) -> list[str]:
    """Spellings of value that may appear in bill text ("1200", "1200.00", "1,200", ...)."""
    candidates = [format_amount(value), f"{value:.2f}", f"{value:,.2f}"]
    if value == int(value):
        candidates.append(f"{int(value):,}")
    return list(dict.fromkeys(candidates))


def find_source_line(raw_text: str, value: float) -> str | None:
    """First non-empty line of raw_text containing value as a whole number (not inside 1200 for 200)."""
    if not raw_text:
        return None
    patterns = [
        re.compile(r"(?<![\d.,])" + re.escape(s) + r"(?![\d]|[.,]\d)", re.ASCII) for s in _amount_strings(value)
    ]
    for line in raw_text.splitlines():
        stripped = line.strip()
        if stripped and any(p.search(stripped) for p in patterns):
            return stripped
    return None


def _captured_value(m: re.Match) -> float | None:
    try:
        return round(float(m.group(1).replace(",", "")), 2)
    except ValueError:
        return None


def classify_amount(
    amount: float,
    raw_text: str,
    match_tolerance: float = 0.0,
) -> ClassifiedAmount:
    """Best-weighted category whose pattern captures exactly this amount; `other` when none does."""
    source_line = find_source_line(raw_text, amount)
    best: ClassifiedAmount | None = None
    for rule in CATEGORY_RULES:
        if best is not None and rule.weight <= best.confidence:
            continue
        for pattern in rule.patterns:
            match = next(
                (
                    m
                    for m in pattern.finditer(raw_text)
                    if (captured := _captured_value(m)) is not None
                    and abs(captured - amount) <= match_tolerance
                ),
                None,
            )
            if match is not None:
                best = ClassifiedAmount(
                    category=rule.category,
                    value=amount,
                    confidence=rule.weight,
                    source_snippet=source_line or match.group(0).strip(),
                )
                break
    if best is None:
        best = ClassifiedAmount(
            category=AmountCategory.OTHER,
            value=amount,
            confidence=OTHER_CONFIDENCE,
            source_snippet=source_line,
        )
    return best


def classify_amounts(
    amounts: Sequence[float],
    raw_text: str,
    match_tolerance: float = 0.0,
) -> ClassificationResult:
    """Classify each amount independently; confidence is the mean, rounded to 2 decimals."""
    classified = tuple(classify_amount(a, raw_text or "", match_tolerance) for a in amounts)
    if classified:
        confidence = round(sum(c.confidence for c in classified) / len(classified), 2)
    else:
        confidence = OTHER_CONFIDENCE
    return ClassificationResult(amounts=classified, confidence=confidence)


def _first(amounts: Sequence[ClassifiedAmount], category: AmountCategory) -> ClassifiedAmount | None:
    return next((a for a in amounts if a.category is category), None)


def validate_classification(
    amounts: Sequence[ClassifiedAmount],
    tolerance: float = DEFAULT_CONSISTENCY_TOLERANCE,
) -> ConsistencyReport:
    """
    Cross-field plausibility: total == paid + due (within tolerance), due <= total, paid <= total.
    Advisory only; callers log the warnings and return data unchanged.
    """
    warnings: list[str] = []
    total = _first(amounts, AmountCategory.TOTAL_BILL)
    paid = _first(amounts, AmountCategory.PAID)
    due = _first(amounts, AmountCategory.DUE)

    if total and paid and due and abs(total.value - (paid.value + due.value)) > tolerance:
        warnings.append(
            f"Total ({format_amount(total.value)}) doesn't match "
            f"Paid ({format_amount(paid.value)}) + Due ({format_amount(due.value)})"
        )
    if total and due and due.value > total.value:
        warnings.append("Due amount is greater than total - possible classification error")
    if total and paid and paid.value > total.value:
        warnings.append("Paid amount is greater than total - possible classification error")
    return ConsistencyReport(valid=not warnings, warnings=tuple(warnings))


class ClassificationService(IClassificationService):
    """Step 3 of the pipeline. Stateless; rule table is module-level and read-only."""

    def __init__(
        self,
        match_tolerance: float = 0.0,
        consistency_tolerance: float = DEFAULT_CONSISTENCY_TOLERANCE,
    ) -> None:
        self._match_tolerance = match_tolerance
        self._consistency_tolerance = consistency_tolerance

    def classify(self, amounts: Sequence[float], raw_text: str, trace_id: str = "") -> ClassificationResult:
        log_structured(logger, logging.INFO, "Starting amount classification", trace_id=trace_id, amount_count=len(amounts))
        try:
            result = classify_amounts(amounts, raw_text, self._match_tolerance)
        except Exception as e:
            raise ClassificationError(f"Classification failed: {e}", trace_id=trace_id) from e
        log_structured(
            logger,
            logging.INFO,
            "Classification complete",
            trace_id=trace_id,
            classified=len(result.amounts),
            confidence=result.confidence,
        )
        return result

    def check_consistency(self, amounts: Sequence[ClassifiedAmount]) -> ConsistencyReport:
        return validate_classification(amounts, self._consistency_tolerance)
