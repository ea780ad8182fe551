"""Best-effort value extraction from raw question text.

Runs against the raw (not normalized) text once a pattern has been chosen,
whether by the matcher or by a caller override. Deterministic, no LLM.

Steps are additive:
1. Positional zip of every numeric literal onto ``signature.variables``.
2. Percentages → ``percentages``; the first is also aliased to ``A`` and
   ``percent`` for legacy response templates.
3. Currency-prefixed literals → ``amounts``.

Never raises: a literal that is not found leaves its key unset.
"""

import re

from src.matching._numeric import (
    CURRENCY_AMOUNT_RE,
    NUMBER_RE,
    PERCENT_RE,
    parse_number,
)
from src.models.catalog import Pattern
from src.models.matching import ExtractedValues

# Keys older response templates read the first percentage from
LEGACY_PERCENT_ALIASES = ("A", "percent")


def _scan(regex: re.Pattern[str], text: str, group: int = 0) -> list[float]:
    values: list[float] = []
    for m in regex.finditer(text):
        value = parse_number(m.group(group))
        if value is not None:
            values.append(value)
    return values


def extract_numbers(text: str) -> list[float]:
    """All numeric literals in left-to-right order."""
    return _scan(NUMBER_RE, text)


def extract_percentages(text: str) -> list[float]:
    return _scan(PERCENT_RE, text, 1)


def extract_amounts(text: str) -> list[float]:
    return _scan(CURRENCY_AMOUNT_RE, text, 1)


def extract_values(raw_text: str, pattern: Pattern) -> ExtractedValues:
    """Recover the quantities a pattern's declared variables refer to."""
    values: ExtractedValues = {}

    # Extra literals beyond the declared variables are dropped here
    for name, number in zip(pattern.signature.variables, extract_numbers(raw_text)):
        values[name] = number

    percentages = extract_percentages(raw_text)
    if percentages:
        values["percentages"] = percentages
        for alias in LEGACY_PERCENT_ALIASES:
            values[alias] = percentages[0]

    amounts = extract_amounts(raw_text)
    if amounts:
        values["amounts"] = amounts

    return values
