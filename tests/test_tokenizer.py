"""
Unit tests for token extraction and currency detection (step 1).
"""
from __future__ import annotations

import pytest

from core.models import CurrencyCode, PipelineStatus
from extraction.tokenizer import (
    clean_token,
    detect_currency,
    extract,
    extract_numeric_tokens,
)


SCENARIO_TEXT = "Total: INR 1200 | Paid: 1000 | Due: 200"


def test_keyword_anchored_tokens_in_order() -> None:
    assert extract_numeric_tokens(SCENARIO_TEXT) == ["1200", "1000", "200"]


def test_extract_is_deterministic() -> None:
    first = extract(SCENARIO_TEXT)
    for _ in range(5):
        again = extract(SCENARIO_TEXT)
        assert again.tokens == first.tokens
        assert again.currency == first.currency


def test_duplicate_values_kept_once() -> None:
    tokens = extract_numeric_tokens("Total: 1200, Subtotal: 1200")
    assert tokens.count("1200") == 1


def test_currency_defaults_to_inr() -> None:
    result = extract("Total: 1200")
    assert result.currency is CurrencyCode.INR
    assert result.status is PipelineStatus.OK


def test_default_currency_is_configurable() -> None:
    assert extract("Total: 1200", CurrencyCode.EUR).currency is CurrencyCode.EUR


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Amount ₹ 450", CurrencyCode.INR),
        ("Paid Rs. 300", CurrencyCode.INR),
        ("Total: $120.00", CurrencyCode.USD),
        ("Total 80 EUR", CurrencyCode.EUR),
        ("Balance £35.50", CurrencyCode.GBP),
        # INR markers win over later ones
        ("Total: INR 1200 (approx $15)", CurrencyCode.INR),
    ],
)
def test_detect_currency(text: str, expected: CurrencyCode) -> None:
    assert detect_currency(text) is expected


def test_currency_letters_inside_words_are_ignored() -> None:
    # "hours" ends in "rs" but is not a rupee marker
    assert detect_currency("Stay: 12 hours, Total: 1200") is CurrencyCode.INR
    assert detect_currency("Stay: 12 hours, Total: 1200", CurrencyCode.USD) is CurrencyCode.USD


def test_thousands_separators_are_stripped() -> None:
    tokens = extract_numeric_tokens("Grand Total: Rs. 1,200.50")
    assert "1200.50" in tokens
    assert "200.50" not in tokens


def test_currency_prefixed_and_two_decimal_passes() -> None:
    text = "Consultation ₹500\nX-Ray 750.00\nRoom 2 days"
    tokens = extract_numeric_tokens(text)
    assert tokens[:2] == ["500", "750.00"]


def test_fallback_only_when_fewer_than_three_tokens() -> None:
    # Three anchored tokens: bare numbers like the bed number are not picked up
    text = "Bed 42\nTotal: 1200\nPaid: 1000\nDue: 200"
    assert extract_numeric_tokens(text) == ["1200", "1000", "200"]


def test_fallback_rejects_small_values_and_long_ids() -> None:
    text = "Visit 3 of 5, ward 12, patient 1234567, fee 350"
    tokens = extract_numeric_tokens(text)
    assert "350" in tokens
    assert "12" in tokens
    assert "3" not in tokens
    assert "1234567" not in tokens


def test_percentages_extracted_after_amounts() -> None:
    tokens = extract_numeric_tokens("Total: 1200\nDiscount 10%\nTax: 60")
    assert tokens[-1] == "10%"
    assert "1200" in tokens and "60" in tokens


def test_no_tokens_for_plain_words() -> None:
    assert extract_numeric_tokens("Hello World") == []
    assert extract("Hello World").tokens == ()


def test_clean_token() -> None:
    assert clean_token("Rs 1,200") == "1200"
    assert clean_token("₹ 45.50") == "45.50"


@pytest.mark.parametrize("code", ["USD", "EUR", "GBP", "INR"])
def test_currency_codes_anchor_keyword_amounts(code: str) -> None:
    text = f"Total: {code} 1200 | Paid: {code} 1000 | Due: {code} 200"
    result = extract(text)
    assert result.tokens == ("1200", "1000", "200")
    assert result.currency is CurrencyCode(code)


def test_non_ascii_digits_are_not_tokens() -> None:
    # Devanagari digits cannot be parsed by the normalizer, so they must not become tokens
    assert extract_numeric_tokens("Total: १२०० | Paid: १००० | Due: २००") == []
