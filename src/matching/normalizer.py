"""Text normalization for embedding.

Collapses numeric detail to placeholders so that questions differing only in
their numbers embed close together:

    "salt decreases by 20%"      → "salt decreases by X%"
    "A sells to B at Rs 500"     → "A sells to B at Rs X"
    "3 men can do work in 5 days" → "X men can do work in X days"

Rules run in a fixed order; later rules never re-match the placeholders
inserted by earlier ones. Casing, punctuation and language are untouched.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from src.matching._numeric import (
    GLYPH_AMOUNT_RE,
    PERCENT_TOKEN_RE,
    RS_AMOUNT_RE,
    STANDALONE_NUMBER_RE,
)

if TYPE_CHECKING:
    from src.models.catalog import Pattern, Question

PLACEHOLDER = "X"


def normalize_for_embedding(text: str) -> str:
    """Replace percentages, currency amounts and numbers with placeholders.

    Pure and idempotent: ``normalize_for_embedding(normalize_for_embedding(s))
    == normalize_for_embedding(s)``.
    """
    text = PERCENT_TOKEN_RE.sub(f"{PLACEHOLDER}%", text)
    text = GLYPH_AMOUNT_RE.sub(rf"\g<1>{PLACEHOLDER}", text)
    text = RS_AMOUNT_RE.sub(f"Rs {PLACEHOLDER}", text)
    return STANDALONE_NUMBER_RE.sub(PLACEHOLDER, text)


def pattern_embedding_text(pattern: Pattern) -> str:
    """Text whose embedding represents a pattern in the Patterns collection.

    Prefers the signature's canonical text; falls back to name and tags.
    """
    if pattern.signature.embedding_text:
        return pattern.signature.embedding_text
    parts = [pattern.name, *pattern.tags]
    if pattern.trick is not None:
        parts.append(pattern.trick.one_liner)
    return normalize_for_embedding(" ".join(p for p in parts if p))


def question_embedding_text(question: Question) -> str:
    """Text whose embedding represents a question in the Questions collection."""
    return normalize_for_embedding(question.text.en)
