"""FastAPI pattern matching endpoints.

POST /v1/match           — tiered match (question → pattern) with alternatives
POST /v1/match/patterns  — pattern tier only
POST /v1/match/extract   — value extraction against a caller-chosen pattern
GET  /v1/match/metrics   — aggregate match outcome counters

No-match is a 200 with ``match: null`` and whatever alternatives were found.
Provider/index failures map to 503 (504 on timeout) so callers can tell
"retry later" apart from "rephrase the question".
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from src.api.dependencies import get_catalog, get_matcher, get_metrics
from src.matching.errors import MatchingError
from src.matching.extractor import extract_values
from src.matching.matcher import TieredMatcher
from src.matching.reporter import build_match_response
from src.models.matching import (
    ExtractedValues,
    MatchOptions,
    MatchResponse,
    MatchResult,
)
from src.observability.metrics import MatchMetricsStore
from src.repositories.catalog import SqlCatalog

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/match", tags=["matching"])


# ---------------------------------------------------------------------------
# Request / Response schemas
# ---------------------------------------------------------------------------


class MatchRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=2000)
    question_threshold: float | None = Field(default=None, ge=0.0, le=1.0)
    pattern_threshold: float | None = Field(default=None, ge=0.0, le=1.0)
    alternatives_floor: float | None = Field(default=None, ge=0.0, le=1.0)
    top_k: int | None = Field(default=None, ge=1, le=50)
    skip_question_match: bool | None = None
    include_values: bool = True
    max_alternatives: int | None = Field(default=None, ge=0)


class MatchEndpointResponse(MatchResponse):
    normalized_text: str
    extracted_values: ExtractedValues | None = None


class ExtractRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=2000)
    pattern_id: str = Field(..., min_length=1)


class ExtractResponse(BaseModel):
    pattern_id: str
    extracted_values: ExtractedValues


class MetricsResponse(BaseModel):
    total: int
    by_outcome: dict[str, int]
    dangling_references: int
    avg_confidence: float | None = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _options_for(body: MatchRequest, matcher: TieredMatcher) -> MatchOptions:
    try:
        return matcher.defaults.with_overrides(
            question_threshold=body.question_threshold,
            pattern_threshold=body.pattern_threshold,
            alternatives_floor=body.alternatives_floor,
            top_k=body.top_k,
            skip_question_match=body.skip_question_match,
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


def _http_error(exc: MatchingError) -> HTTPException:
    return HTTPException(
        status_code=exc.status_code,
        detail={"code": exc.code, "message": exc.message},
    )


def _to_response(
    body: MatchRequest,
    result: MatchResult,
) -> MatchEndpointResponse:
    packaged = build_match_response(
        result, max_alternatives=body.max_alternatives,
    )
    values = None
    if body.include_values and result.match is not None:
        values = extract_values(body.message, result.match.pattern)
    return MatchEndpointResponse(
        **packaged.model_dump(),
        normalized_text=result.normalized_text,
        extracted_values=values,
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("", response_model=MatchEndpointResponse)
async def match_question(
    body: MatchRequest,
    matcher: TieredMatcher = Depends(get_matcher),
) -> MatchEndpointResponse:
    options = _options_for(body, matcher)
    try:
        result = await matcher.match_with_fallback(body.message, options)
    except MatchingError as exc:
        logger.error("Match failed: %s", exc.message)
        raise _http_error(exc) from exc
    return _to_response(body, result)


@router.post("/patterns", response_model=MatchEndpointResponse)
async def match_patterns_only(
    body: MatchRequest,
    matcher: TieredMatcher = Depends(get_matcher),
) -> MatchEndpointResponse:
    options = _options_for(body, matcher)
    try:
        result = await matcher.match_pattern_only(body.message, options)
    except MatchingError as exc:
        logger.error("Pattern-only match failed: %s", exc.message)
        raise _http_error(exc) from exc
    return _to_response(body, result)


@router.post("/extract", response_model=ExtractResponse)
async def extract_for_pattern(
    body: ExtractRequest,
    catalog: SqlCatalog = Depends(get_catalog),
) -> ExtractResponse:
    pattern = await catalog.get_pattern_by_id(body.pattern_id)
    if pattern is None:
        raise HTTPException(
            status_code=404, detail=f"Pattern {body.pattern_id} not found.",
        )
    return ExtractResponse(
        pattern_id=pattern.id,
        extracted_values=extract_values(body.message, pattern),
    )


@router.get("/metrics", response_model=MetricsResponse)
async def match_metrics(
    metrics: MatchMetricsStore = Depends(get_metrics),
) -> MetricsResponse:
    summary = metrics.summary()
    return MetricsResponse(
        total=summary.total,
        by_outcome=summary.by_outcome,
        dangling_references=summary.dangling_references,
        avg_confidence=summary.avg_confidence,
    )
