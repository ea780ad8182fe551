"""Numeric literal regexes shared by the normalizer and the value extractor.

Deterministic, no LLM. Thousands separators are commas; decimals use a dot.
"""

import re

# Currency glyphs recognised as prefixes (rupee, dollar, euro, pound)
CURRENCY_GLYPHS = "₹$€£"

_NUMBER = r"\d[\d,]*(?:\.\d+)?"

# 20%, 30.5% (also tolerates "20 %" when scanning raw text)
PERCENT_RE = re.compile(r"(\d+(?:\.\d+)?)\s*%")

# Strict form used by normalization: no space before the sign
PERCENT_TOKEN_RE = re.compile(r"\d+(?:\.\d+)?%")

# ₹500, ₹ 1,000, $12.50
GLYPH_AMOUNT_RE = re.compile(rf"([{CURRENCY_GLYPHS}])\s?{_NUMBER}")

# Rs 500, Rs. 1,000, rs.250
RS_AMOUNT_RE = re.compile(rf"\bRs\.?\s?{_NUMBER}", re.IGNORECASE)

# Either currency form, capturing the amount
CURRENCY_AMOUNT_RE = re.compile(
    rf"(?:[{CURRENCY_GLYPHS}]|\bRs\.?)\s*({_NUMBER})",
    re.IGNORECASE,
)

# Standalone numbers: 5 years, 3 men, 1,200.50
STANDALONE_NUMBER_RE = re.compile(rf"\b{_NUMBER}\b")

# Any numeric literal, word-attached or not (raw-text scan)
NUMBER_RE = re.compile(_NUMBER)


def parse_number(literal: str) -> float | None:
    """Parse a matched literal, dropping thousands separators.

    Returns None when nothing numeric is left.
    """
    cleaned = literal.replace(",", "")
    if not cleaned:
        return None
    try:
        return float(cleaned)
    except ValueError:
        return None
