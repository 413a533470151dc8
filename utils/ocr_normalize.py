"""
OCR token repair: fix letters misread for digits (l/I -> 1, O/o -> 0, S -> 5, ...) so that
downstream parsing sees the intended amount. Only Latin letter/digit confusions are handled.
"""

from __future__ import annotations

import re
import string

# Visually similar OCR misreads -> intended digit
OCR_DIGIT_CONFUSIONS: dict[str, str] = {
    "l": "1",
    "I": "1",
    "O": "0",
    "o": "0",
    "S": "5",
    "s": "5",
    "B": "8",
    "Z": "2",
    "T": "7",
    "G": "6",
}

_CONFUSABLE_RUN = re.compile("[" + re.escape("".join(OCR_DIGIT_CONFUSIONS)) + "]+")
_NUMERIC_NEIGHBOURS = frozenset(string.digits + ".,")


def _is_numeric_char(ch: str | None) -> bool:
    return ch is not None and ch in _NUMERIC_NEIGHBOURS


def is_digit_adjacent(text: str, start: int, end: int) -> bool:
    """
    True if text[start:end] sits between numeric characters, or touches a string boundary
    on one side and a numeric character on the other ("l200", "2OO", "1O5").
    """
    before = text[start - 1] if start > 0 else None
    after = text[end] if end < len(text) else None
    if _is_numeric_char(before) and _is_numeric_char(after):
        return True
    if before is None and _is_numeric_char(after):
        return True
    if after is None and _is_numeric_char(before):
        return True
    return False


def repair_digit_confusions(token: str) -> str:
    """
    Replace confusable letters with digits where they are digit-adjacent.
    Tokens without a single real digit are returned unchanged, so words are never rewritten.
    """
    if not token or not any(ch in string.digits for ch in token):
        return token

    def repl(m: re.Match) -> str:
        if not is_digit_adjacent(token, m.start(), m.end()):
            return m.group(0)
        return "".join(OCR_DIGIT_CONFUSIONS[ch] for ch in m.group(0))

    return _CONFUSABLE_RUN.sub(repl, token)
