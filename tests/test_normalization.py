"""
Unit tests for OCR digit repair and token normalization (step 2).
Tests: confusion repair guard, parse/drop behaviour, confidence ratio, batch business rules.
"""
from __future__ import annotations

import pytest

from services.normalization_service import (
    NormalizationService,
    normalize_amounts,
    normalize_percentages,
    normalize_token,
    validate_normalized_amounts,
)
from utils.ocr_normalize import is_digit_adjacent, repair_digit_confusions


# ---------------------------------------------------------------------------
# Digit confusion repair
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "token, expected",
    [
        ("l200", "1200"),
        ("2OO", "200"),
        ("I00", "100"),
        ("1O5", "105"),
        ("1,2OO.5O", "1,200.50"),
        ("B5", "85"),
        ("4Z", "42"),
    ],
)
def test_repair_digit_adjacent_confusions(token: str, expected: str) -> None:
    assert repair_digit_confusions(token) == expected


@pytest.mark.parametrize("token", ["Sold", "TOTAL", "abc", ""])
def test_words_without_digits_are_untouched(token: str) -> None:
    assert repair_digit_confusions(token) == token


def test_letters_not_adjacent_to_digits_are_untouched() -> None:
    # "s" in "Rs" touches a digit on one side only and is not at the string start
    assert repair_digit_confusions("Rs1200") == "Rs1200"


def test_is_digit_adjacent() -> None:
    assert is_digit_adjacent("1O5", 1, 2)
    assert is_digit_adjacent("l200", 0, 1)
    assert is_digit_adjacent("2OO", 1, 3)
    assert not is_digit_adjacent("Rs1200", 1, 2)


# ---------------------------------------------------------------------------
# Token normalization
# ---------------------------------------------------------------------------


def test_ocr_repaired_tokens() -> None:
    assert normalize_amounts(["l200"]).amounts == (1200.0,)
    assert normalize_amounts(["2OO"]).amounts == (200.0,)
    assert normalize_amounts(["I00"]).amounts == (100.0,)


def test_unparseable_token_dropped_and_confidence_is_ratio() -> None:
    result = normalize_amounts(["1200", "abc"])
    assert result.amounts == (1200.0,)
    assert result.confidence == 0.5


def test_percentages_skipped_and_not_counted() -> None:
    result = normalize_amounts(["10%", "1200", "1000"])
    assert result.amounts == (1200.0, 1000.0)
    assert result.confidence == 1.0
    assert result.percentages == (10.0,)


def test_no_attempts_gives_zero_confidence() -> None:
    result = normalize_amounts(["18%"])
    assert result.amounts == ()
    assert result.confidence == 0.0


@pytest.mark.parametrize(
    "token, expected",
    [
        ("1,200.50", 1200.5),
        ("₹450", 450.0),
        ("$12.5", 12.5),
        ("0.456", 0.46),
        ("-50", 50.0),
        ("abc", None),
        ("1.2.3", None),
    ],
)
def test_normalize_token(token: str, expected: float | None) -> None:
    assert normalize_token(token) == expected


def test_amounts_never_negative() -> None:
    tokens = ["-1", "-0.5", "−300", "1200", "(200)", "-l00"]
    result = normalize_amounts(tokens)
    assert all(a >= 0 for a in result.amounts)


def test_normalize_percentages() -> None:
    assert normalize_percentages(["10%", "1200", "2.5%", "x%"]) == [10.0, 2.5]


def test_service_wraps_normalization() -> None:
    svc = NormalizationService()
    result = svc.normalize(["l200", "1000", "2OO"], trace_id="t-1")
    assert result.amounts == (1200.0, 1000.0, 200.0)
    assert result.confidence == 1.0


# ---------------------------------------------------------------------------
# Business rules
# ---------------------------------------------------------------------------


def test_validation_accepts_normal_batch() -> None:
    assert validate_normalized_amounts([1200.0, 1000.0, 200.0]).valid


def test_validation_rejects_empty() -> None:
    outcome = validate_normalized_amounts([])
    assert not outcome.valid
    assert outcome.reason


def test_validation_rejects_unreasonably_large() -> None:
    assert not validate_normalized_amounts([1200.0, 20_000_000.0]).valid
    # Ceiling is configurable on the service
    assert not NormalizationService(max_reasonable_amount=1000.0).validate([1200.0]).valid


def test_validation_rejects_mostly_zeros() -> None:
    assert not validate_normalized_amounts([0.0, 0.0, 100.0]).valid
    # Exactly half zero is still accepted
    assert validate_normalized_amounts([0.0, 100.0]).valid
