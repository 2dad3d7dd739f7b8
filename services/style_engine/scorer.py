# services/style_engine/scorer.py
# Turns slider responses into category scores, dimension balances and 2D coordinates.

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Union

from services.style_engine.loader import validate_dimensions
from services.style_engine.models import (
    MAX_PREFERENCE_STRENGTH,
    NEUTRAL_SLIDER_VALUE,
    AssessmentScore,
    CategoryScore,
    Coordinates,
    DimensionScore,
    GeneratedQuestion,
    InvalidResponseError,
    PhraseConfig,
    Preference,
    Response,
    ScoredResponse,
    UnknownPhraseError,
)

logger = logging.getLogger(__name__)


# --- Step 1: per-response preference ---

def calculate_preference(
    slider_value: int,
    left_phrase: str,
    right_phrase: str,
    config: PhraseConfig,
) -> Preference:
    """
    Converts a 0-10 slider value into a preferred category and a 0-5 strength.

    5 is neutral. Below 5 favours the left phrase (4 -> 1 ... 0 -> 5),
    above 5 favours the right phrase (6 -> 1 ... 10 -> 5).
    """
    left_category = config.category_of(left_phrase)
    right_category = config.category_of(right_phrase)
    if left_category is None or right_category is None:
        raise UnknownPhraseError(
            f"Could not find categories for phrases: '{left_phrase}' or '{right_phrase}'"
        )

    if slider_value == NEUTRAL_SLIDER_VALUE:
        preferred, strength = None, 0
    elif slider_value < NEUTRAL_SLIDER_VALUE:
        preferred, strength = left_category, NEUTRAL_SLIDER_VALUE - slider_value
    else:
        preferred, strength = right_category, slider_value - NEUTRAL_SLIDER_VALUE

    return Preference(
        preferred_category=preferred,
        strength=strength,
        left_category=left_category,
        right_category=right_category,
    )


def resolve_responses(
    questions: Iterable[GeneratedQuestion],
    responses: Iterable[Union[Response, Dict[str, Any]]],
    config: PhraseConfig,
) -> List[ScoredResponse]:
    """Pairs every response with its question and resolved preference."""
    question_map = {q.id: q for q in questions}
    answered = set()
    scored: List[ScoredResponse] = []

    for response in responses:
        if isinstance(response, dict):
            response = Response.model_validate(response)
        question = question_map.get(response.question_id)
        if question is None:
            raise UnknownPhraseError(f"Response references unknown question '{response.question_id}'")
        if response.question_id in answered:
            raise InvalidResponseError(f"Duplicate response for question '{response.question_id}'")
        answered.add(response.question_id)

        preference = calculate_preference(response.value, question.left_phrase, question.right_phrase, config)
        scored.append(
            ScoredResponse(
                question_id=response.question_id,
                value=response.value,
                left_phrase=question.left_phrase,
                right_phrase=question.right_phrase,
                preference=preference,
            )
        )
    return scored


# --- Step 2: category aggregation ---

def calculate_category_scores(scored_responses: List[ScoredResponse], config: PhraseConfig) -> List[CategoryScore]:
    """
    Sums preference strength per category and normalizes by the category's exposure:
    a category shown in n questions can collect at most n * 5.
    """
    totals: Dict[str, int] = {category: 0 for category in config.categories()}
    appearances: Dict[str, int] = {category: 0 for category in config.categories()}

    for scored in scored_responses:
        preference = scored.preference
        if preference.preferred_category is not None:
            totals[preference.preferred_category] += preference.strength
        # A category counts once per question even when both sides belong to it
        for category in {preference.left_category, preference.right_category}:
            appearances[category] += 1

    category_scores = []
    for phrase_set in config.phrase_sets:
        category = phrase_set.category
        question_count = appearances[category]
        max_possible = question_count * MAX_PREFERENCE_STRENGTH
        raw_score = totals[category]
        category_scores.append(
            CategoryScore(
                category=category,
                dimension=phrase_set.dimension,
                raw_score=float(raw_score),
                normalized_score=raw_score / max_possible if max_possible > 0 else 0.0,
                question_count=question_count,
            )
        )
    return category_scores


# --- Step 3: dimension aggregation ---

def dimension_balance(category1_score: float, category2_score: float) -> float:
    """-1 means fully category1, +1 fully category2, 0 balanced or no data."""
    total = category1_score + category2_score
    if total == 0:
        return 0.0
    return (category2_score - category1_score) / total


def calculate_dimension_scores(category_scores: List[CategoryScore], config: PhraseConfig) -> List[DimensionScore]:
    if not config.dimensions:
        return []

    by_category = {cs.category: cs for cs in category_scores}
    dimension_scores = []
    for dimension in config.dimensions:
        category1, category2 = dimension.categories
        score1 = by_category.get(category1)
        score2 = by_category.get(category2)
        cat1 = score1.normalized_score if score1 else 0.0
        cat2 = score2.normalized_score if score2 else 0.0
        dimension_scores.append(
            DimensionScore(
                dimension=dimension.name,
                category1=category1,
                category2=category2,
                category1_score=cat1,
                category2_score=cat2,
                dimension_balance=dimension_balance(cat1, cat2),
                total_questions=(score1.question_count if score1 else 0) + (score2.question_count if score2 else 0),
            )
        )
    return dimension_scores


# --- Step 4: coordinate mapping ---

def _clamp(value: float) -> float:
    return max(-1.0, min(1.0, value))


def calculate_coordinates(dimension_scores: List[DimensionScore], config: PhraseConfig) -> Coordinates:
    """
    Projects two named dimensions onto the plot: the configured x axis dimension
    (default "Uncertainty Attitude", -1 Reason / +1 Play) and y axis dimension
    (default "Possibility Attitude", -1 Structure / +1 Openness).
    Any other dimension never moves the point; a missing axis stays at 0.
    """
    settings = config.settings
    balances = {ds.dimension: ds.dimension_balance for ds in dimension_scores}
    x = balances.get(settings.x_axis_dimension, 0.0)
    y = balances.get(settings.y_axis_dimension, 0.0)
    return Coordinates(x=_clamp(x), y=_clamp(y))


# --- Full pipeline ---

def score_assessment(
    questions: List[GeneratedQuestion],
    responses: List[Union[Response, Dict[str, Any]]],
    config: PhraseConfig,
    completed_at: Optional[datetime] = None,
) -> AssessmentScore:
    """
    Scores one completed assessment. All-or-nothing: any unresolvable response aborts.

    Raises:
        InvalidDimensionError: a dimension is malformed.
        UnknownPhraseError: a response's question or phrase does not map to a category.
        InvalidResponseError: more than one response for a question.
    """
    validate_dimensions(config)
    scored_responses = resolve_responses(questions, responses, config)
    category_scores = calculate_category_scores(scored_responses, config)
    dimension_scores = calculate_dimension_scores(category_scores, config)
    coordinates = calculate_coordinates(dimension_scores, config)

    logger.debug(f"Scored {len(scored_responses)} responses -> coordinates ({coordinates.x:.3f}, {coordinates.y:.3f})")
    return AssessmentScore(
        category_scores=category_scores,
        dimension_scores=dimension_scores,
        coordinates=coordinates,
        total_questions=len(scored_responses),
        completed_at=completed_at or datetime.now(timezone.utc),
    )
