"""Catalog Pydantic models: patterns and questions.

Patterns are reusable solution templates; questions are recorded instances
of a pattern. Both are authored elsewhere and are read-only to the matching
engine. Nested authoring payloads that used to be free-form JSON are modelled
explicitly, with absence represented by ``None`` rather than a missing key.
"""

from enum import StrEnum

from pydantic import Field, field_validator

from src.matching.normalizer import normalize_for_embedding
from src.models.common import JeetBase, UTCTimestamp, utc_now


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class PatternFrequency(StrEnum):
    """How often a pattern shows up in exam papers."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TeachingDepth(StrEnum):
    DEEP = "deep"
    SHORTCUT = "shortcut"
    INSTANT = "instant"


class OptionKey(StrEnum):
    A = "a"
    B = "b"
    C = "c"
    D = "d"


# ---------------------------------------------------------------------------
# Pattern
# ---------------------------------------------------------------------------


class PatternSignature(JeetBase):
    """Canonical embedding text plus the ordered variables it declares.

    ``embedding_text`` is always stored in placeholder-normalized form so that
    similarity is topic-level rather than instance-level.
    """

    embedding_text: str = ""
    variables: list[str] = Field(default_factory=list)

    @field_validator("embedding_text")
    @classmethod
    def _canonicalize(cls, v: str) -> str:
        return normalize_for_embedding(v)


class TrickStep(JeetBase):
    step: int = Field(..., ge=1)
    action: str
    example: str = ""
    example_hi: str | None = None


class TrickAlternative(JeetBase):
    name: str
    name_hi: str = ""
    one_liner: str
    when_to_use: str = ""
    steps: list[TrickStep] = Field(default_factory=list)


class PatternTrick(JeetBase):
    name: str
    name_hi: str = ""
    one_liner: str
    steps: list[TrickStep] = Field(default_factory=list)
    formula: str | None = None
    formula_simple: str | None = None
    memory_hook: str | None = None
    quick_fractions: dict[str, str] | None = None
    alternatives: list[TrickAlternative] = Field(default_factory=list)


class CommonMistake(JeetBase):
    mistake: str
    wrong: str
    right: str
    why: str | None = None


class TeachingLevel(JeetBase):
    explanation: str
    duration: str = ""
    includes: list[str] = Field(default_factory=list)


class PatternTeaching(JeetBase):
    deep: TeachingLevel
    shortcut: TeachingLevel
    instant: TeachingLevel

    def level(self, depth: TeachingDepth) -> TeachingLevel:
        return getattr(self, depth.value)


class PatternVisual(JeetBase):
    has_diagram: bool = False
    template_id: str | None = None
    description: str | None = None
    when_to_show: str | None = None
    annotations: dict[str, str] | None = None


class PatternPrerequisites(JeetBase):
    patterns: list[str] = Field(default_factory=list)
    concepts: list[str] = Field(default_factory=list)


class Pattern(JeetBase):
    """A catalog entry representing one reusable solution template.

    The similarity vector derived from ``signature`` is stored alongside the
    row but never carried on the model.
    """

    id: str = Field(..., min_length=1, max_length=100)
    topic_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    name_hi: str = ""
    slug: str = ""
    signature: PatternSignature = Field(default_factory=PatternSignature)
    trick: PatternTrick | None = None
    common_mistakes: list[CommonMistake] = Field(default_factory=list)
    teaching: PatternTeaching | None = None
    visual: PatternVisual | None = None
    prerequisites: PatternPrerequisites = Field(
        default_factory=PatternPrerequisites,
    )
    difficulty: int = Field(default=2, ge=1, le=5)
    frequency: PatternFrequency = PatternFrequency.MEDIUM
    avg_time_seconds: int = Field(default=60, ge=0)
    tags: list[str] = Field(default_factory=list)
    created_at: UTCTimestamp = Field(default_factory=utc_now)
    updated_at: UTCTimestamp = Field(default_factory=utc_now)


# ---------------------------------------------------------------------------
# Question
# ---------------------------------------------------------------------------


class QuestionText(JeetBase):
    en: str = Field(..., min_length=1)
    hi: str | None = None


class QuestionOptions(JeetBase):
    a: str
    b: str
    c: str
    d: str


class QuestionSolution(JeetBase):
    trick_application: list[str] = Field(default_factory=list)
    answer: float | str
    answer_display: str = ""


class QuestionSource(JeetBase):
    book: str
    edition: str | None = None
    chapter: int | None = None
    chapter_name: str | None = None
    question_number: int | None = None
    page: int | None = None


class ExamAppearance(JeetBase):
    exam: str
    year: int
    tier: int | None = None
    date: str | None = None
    shift: int | None = None


class Question(JeetBase):
    """A previously recorded natural-language instance of a pattern."""

    id: str = Field(..., min_length=1, max_length=100)
    pattern_id: str = Field(..., min_length=1)
    topic_id: str = Field(..., min_length=1)
    text: QuestionText
    options: QuestionOptions | None = None
    correct_option: OptionKey | None = None
    solution: QuestionSolution | None = None
    source: QuestionSource | None = None
    exam_history: list[ExamAppearance] = Field(default_factory=list)
    difficulty: int = Field(default=2, ge=1, le=5)
    is_pyq: bool = False
    is_variation: bool = False
    created_at: UTCTimestamp = Field(default_factory=utc_now)
