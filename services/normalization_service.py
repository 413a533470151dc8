"""
Normalization: repair OCR digit confusions in raw tokens and parse them into amounts.
Implements INormalizationService; tokens that fail to parse are dropped, not kept as errors.
"""

from __future__ import annotations

import logging
import re
from typing import Sequence

from core.exceptions import NormalizationError
from core.interfaces import INormalizationService
from core.models import NormalizationResult, ValidationOutcome
from utils.logger import log_structured
from utils.ocr_normalize import repair_digit_confusions

logger = logging.getLogger(__name__)

DEFAULT_MAX_REASONABLE_AMOUNT = 10_000_000.0

_CURRENCY_SYMBOLS = re.compile(r"[₹$€£]")
_NON_NUMERIC = re.compile(r"[^0-9.,]")


def is_percentage(token: str) -> bool:
    return "%" in token


def normalize_token(token: str) -> float | None:
    """
    Clean one token and convert it to a non-negative amount rounded to 2 decimals.
    Returns None when nothing parseable remains.
    """
    cleaned = _CURRENCY_SYMBOLS.sub("", token)
    cleaned = repair_digit_confusions(cleaned)
    cleaned = _NON_NUMERIC.sub("", cleaned).replace(",", "")
    try:
        value = float(cleaned)
    except ValueError:
        return None
    if value < 0:
        return None
    return round(value, 2)


def normalize_amounts(tokens: Sequence[str]) -> NormalizationResult:
    """
    Normalize every non-percentage token. Confidence is successes / attempts
    (percentages are not attempts), rounded to 2 decimals; 0.0 when nothing was attempted.
    """
    amounts: list[float] = []
    attempts = 0
    for token in tokens:
        if is_percentage(token):
            continue
        attempts += 1
        value = normalize_token(token)
        if value is not None:
            amounts.append(value)
    confidence = round(len(amounts) / attempts, 2) if attempts else 0.0
    return NormalizationResult(
        amounts=tuple(amounts),
        confidence=confidence,
        percentages=tuple(normalize_percentages(tokens)),
    )


def normalize_percentages(tokens: Sequence[str]) -> list[float]:
    """Numeric part of each percentage token ("10%" -> 10.0), same repair rules as amounts."""
    out: list[float] = []
    for token in tokens:
        if not is_percentage(token):
            continue
        value = normalize_token(token.replace("%", "").strip())
        if value is not None:
            out.append(value)
    return out


def validate_normalized_amounts(
    amounts: Sequence[float],
    max_reasonable_amount: float = DEFAULT_MAX_REASONABLE_AMOUNT,
) -> ValidationOutcome:
    """Batch-level business rules: non-empty, no spuriously huge values, not mostly zeros."""
    if not amounts:
        return ValidationOutcome(False, "No valid amounts found after normalization")
    if any(a > max_reasonable_amount for a in amounts):
        return ValidationOutcome(False, "Detected unreasonably large amounts - possible OCR error")
    zero_count = sum(1 for a in amounts if a == 0)
    if zero_count > len(amounts) / 2:
        return ValidationOutcome(False, "Too many zero values detected")
    return ValidationOutcome(True)


class NormalizationService(INormalizationService):
    """Step 2 of the pipeline. Stateless; safe to share across requests."""

    def __init__(self, max_reasonable_amount: float = DEFAULT_MAX_REASONABLE_AMOUNT) -> None:
        self._max_reasonable_amount = max_reasonable_amount

    def normalize(self, tokens: Sequence[str], trace_id: str = "") -> NormalizationResult:
        log_structured(logger, logging.INFO, "Starting normalization", trace_id=trace_id, token_count=len(tokens))
        try:
            result = normalize_amounts(tokens)
        except Exception as e:
            raise NormalizationError(f"Normalization failed: {e}", trace_id=trace_id) from e
        log_structured(
            logger,
            logging.INFO,
            "Normalization complete",
            trace_id=trace_id,
            amount_count=len(result.amounts),
            confidence=result.confidence,
        )
        return result

    def validate(self, amounts: Sequence[float]) -> ValidationOutcome:
        return validate_normalized_amounts(amounts, self._max_reasonable_amount)
