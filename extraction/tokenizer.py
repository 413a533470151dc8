"""
Token extractor: pull numeric tokens out of bill text and guess the currency.
Layered passes (keyword-anchored, currency-prefixed, two-decimal, bare-number fallback)
because bill layouts vary; tokens are deduplicated in first-seen order.
"""
from __future__ import annotations

import re
from typing import Iterable

from core.models import CurrencyCode, TokenExtractionResult

_CURRENCY_MARKER = r"(?:(?<![A-Za-z])(?:Rs\.?|INR|USD|EUR|GBP)|₹|\$|€|£)"
_NUMBER = r"\d{1,3}(?:,\d{2,3})+(?:\.\d{1,2})?|\d{1,7}(?:\.\d{1,2})?"

# Pass 1: amounts right after money keywords, e.g. "Total: INR 1,200", "Balance Due 200.50"
KEYWORD_AMOUNT_PATTERN = re.compile(
    r"\b(?:total|paid|due|balance|amount|mrp|discount|tax|subtotal|net|gross)[:\s]*"
    + _CURRENCY_MARKER
    + r"?\s*("
    + _NUMBER
    + r")",
    re.IGNORECASE | re.ASCII,
)
# Pass 2: currency-prefixed numbers anywhere, e.g. "Rs. 450", "₹1200"
CURRENCY_AMOUNT_PATTERN = re.compile(
    _CURRENCY_MARKER + r"\s*(" + _NUMBER + r")", re.IGNORECASE | re.ASCII
)
# Pass 3: bare numbers with exactly two decimals; OCR rarely invents a decimal point
DECIMAL_AMOUNT_PATTERN = re.compile(
    r"(?<![\d.,])(\d{1,3}(?:,\d{2,3})+\.\d{2}|\d{1,7}\.\d{2})(?![\d.])", re.ASCII
)
# Fallback: any 2-6 digit number, whole ("1,200" is not read as "200")
BARE_NUMBER_PATTERN = re.compile(
    r"(?<![\w.,])(\d{1,3}(?:,\d{2,3})+(?:\.\d{1,2})?|\d{2,6}(?:\.\d{1,2})?)(?![\w]|[.,]\d)",
    re.ASCII,
)
# Percentages ("GST 18%", "Discount 10 %"), kept as "18%"
PERCENTAGE_PATTERN = re.compile(r"(?<![\d.])(\d{1,3}(?:\.\d{1,2})?)\s*%", re.ASCII)

# Everything but digits and the decimal point: currency symbols/letters, whitespace, thousands separators
_CLEAN_PATTERN = re.compile(r"[^\d.]", re.ASCII)

MIN_TOKEN_VALUE, MAX_TOKEN_VALUE = 0.01, 999_999.0
# Fallback bounds reject small counters, dates split into parts, phone numbers and IDs
MIN_FALLBACK_VALUE = 10.0
MAX_FALLBACK_LENGTH = 8
FALLBACK_MIN_TOKENS = 3

# Checked in order; first hit wins
CURRENCY_PATTERNS: tuple[tuple[CurrencyCode, re.Pattern[str]], ...] = (
    (CurrencyCode.INR, re.compile(r"₹|\b(?:INR|Rs|Rupees?|Indian\s+Rupees?)\b", re.IGNORECASE | re.ASCII)),
    (CurrencyCode.USD, re.compile(r"\$|\b(?:USD|US\s+Dollars?|Dollars?)\b", re.IGNORECASE | re.ASCII)),
    (CurrencyCode.EUR, re.compile(r"€|\b(?:EUR|Euros?)\b", re.IGNORECASE | re.ASCII)),
    (CurrencyCode.GBP, re.compile(r"£|\b(?:GBP|Pounds?)\b", re.IGNORECASE | re.ASCII)),
)


def clean_token(value: str) -> str:
    """Strip currency markers, whitespace and thousands separators from a captured group."""
    return _CLEAN_PATTERN.sub("", value).strip()


def _parse(cleaned: str) -> float | None:
    try:
        return float(cleaned)
    except ValueError:
        return None


def _collect(
    matches: Iterable[re.Match],
    tokens: list[str],
    seen: set[str],
    *,
    min_value: float,
    max_length: int | None = None,
) -> None:
    for m in matches:
        cleaned = clean_token(m.group(1) or m.group(0))
        if not cleaned or cleaned in seen:
            continue
        if max_length is not None and len(cleaned) > max_length:
            continue
        num = _parse(cleaned)
        if num is None or not (min_value <= num <= MAX_TOKEN_VALUE):
            continue
        tokens.append(cleaned)
        seen.add(cleaned)


def extract_numeric_tokens(text: str) -> list[str]:
    """
    Return numeric tokens in first-seen order, without duplicates.

    Passes 1-3 always run; the bare-number fallback only when they found fewer than
    three tokens. Percentage tokens ("10%") are appended last and never count toward
    the fallback threshold.
    """
    tokens: list[str] = []
    seen: set[str] = set()
    if not text:
        return tokens

    for pattern in (KEYWORD_AMOUNT_PATTERN, CURRENCY_AMOUNT_PATTERN, DECIMAL_AMOUNT_PATTERN):
        _collect(pattern.finditer(text), tokens, seen, min_value=MIN_TOKEN_VALUE)

    if len(tokens) < FALLBACK_MIN_TOKENS:
        _collect(
            BARE_NUMBER_PATTERN.finditer(text),
            tokens,
            seen,
            min_value=MIN_FALLBACK_VALUE,
            max_length=MAX_FALLBACK_LENGTH,
        )

    for m in PERCENTAGE_PATTERN.finditer(text):
        pct = f"{m.group(1)}%"
        if pct not in seen:
            tokens.append(pct)
            seen.add(pct)
    return tokens


def detect_currency(text: str, default: CurrencyCode = CurrencyCode.INR) -> CurrencyCode:
    """First currency whose marker appears in text (INR, USD, EUR, GBP order); else default."""
    for currency, pattern in CURRENCY_PATTERNS:
        if text and pattern.search(text):
            return currency
    return default


def extract(text: str, default_currency: CurrencyCode = CurrencyCode.INR) -> TokenExtractionResult:
    """Tokens + currency for text. Pure: no guardrails, no logging."""
    return TokenExtractionResult(
        tokens=tuple(extract_numeric_tokens(text)),
        currency=detect_currency(text, default_currency),
        raw_text=text,
    )
