"""
Question generation: turns the phrase pool into an ordered list of phrase-pair questions.

Two pairing strategies are supported:

* random (default): one global shuffle of every phrase, consecutive phrases are paired,
  so no phrase is ever shown twice in one assessment.
* dimension-focused: for each dimension, its two categories are shuffled separately and
  paired index by index. Questions stay grouped by dimension so they can be presented
  as phases.
"""
import logging
import random
from typing import Dict, List, Optional, Sequence, TypeVar, Union

from services.style_engine.loader import validate_dimensions
from services.style_engine.models import (
    GeneratedQuestion,
    InsufficientPhrasesError,
    PairingStrategy,
    PhraseConfig,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def shuffle(items: Sequence[T], rng: random.Random) -> List[T]:
    """Fisher-Yates shuffle. Returns a new list and leaves `items` untouched."""
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def pair_label(first_index: int, second_index: int) -> str:
    """Label of a phrase pair, independent of which phrase ends up on the left."""
    return f"{min(first_index, second_index)}-vs-{max(first_index, second_index)}"


def _build_question(
    number: int,
    first_index: int,
    second_index: int,
    pool: List[str],
    rng: random.Random,
    phase: Optional[int] = None,
    dimension: Optional[str] = None,
) -> GeneratedQuestion:
    # Coin flip for the side, independent of category
    if rng.random() < 0.5:
        left_index, right_index = first_index, second_index
    else:
        left_index, right_index = second_index, first_index
    return GeneratedQuestion(
        id=f"q{number}",
        left_phrase=pool[left_index],
        right_phrase=pool[right_index],
        left_phrase_index=left_index,
        right_phrase_index=right_index,
        pair_label=pair_label(left_index, right_index),
        phase=phase,
        dimension=dimension,
    )


def _category_indices(config: PhraseConfig) -> Dict[str, List[int]]:
    """Maps each category to the pool indices of its phrases."""
    indices: Dict[str, List[int]] = {}
    offset = 0
    for phrase_set in config.phrase_sets:
        indices[phrase_set.category] = list(range(offset, offset + len(phrase_set.phrases)))
        offset += len(phrase_set.phrases)
    return indices


def uses_dimension_focus(config: PhraseConfig) -> bool:
    settings = config.settings
    return (
        settings.pairing_strategy == PairingStrategy.DIMENSION_FOCUSED
        and bool(config.dimensions)
        and settings.ensure_equal_dimension_coverage
    )


def _generate_random_questions(config: PhraseConfig, count: int, rng: random.Random) -> List[GeneratedQuestion]:
    pool = config.flatten_phrases()
    max_possible = len(pool) // 2
    if count > max_possible:
        logger.warning(f"Requested {count} questions but the phrase pool only allows {max_possible}; capping.")
    actual_count = min(count, max_possible)

    # Shuffle indices rather than texts so identical phrases keep distinct identities
    order = shuffle(range(len(pool)), rng)
    return [
        _build_question(k + 1, order[2 * k], order[2 * k + 1], pool, rng)
        for k in range(actual_count)
    ]


def _generate_dimension_focused_questions(
    config: PhraseConfig, count: int, rng: random.Random
) -> List[GeneratedQuestion]:
    pool = config.flatten_phrases()
    by_category = _category_indices(config)
    dimensions = config.dimensions or []
    per_dimension = count // len(dimensions)

    questions: List[GeneratedQuestion] = []
    for phase, dimension in enumerate(dimensions, start=1):
        category_a, category_b = dimension.categories
        phrases_a = shuffle(by_category[category_a], rng)
        phrases_b = shuffle(by_category[category_b], rng)
        pairs = min(per_dimension, len(phrases_a), len(phrases_b))
        if pairs < per_dimension:
            logger.warning(
                f"Dimension '{dimension.name}' can only supply {pairs} of {per_dimension} requested pairs."
            )
        for i in range(pairs):
            questions.append(
                _build_question(
                    len(questions) + 1, phrases_a[i], phrases_b[i], pool, rng,
                    phase=phase, dimension=dimension.name,
                )
            )
    # Not shuffled: dimension order is the phase order
    return questions


def generate_questions(
    config: PhraseConfig,
    count: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> List[GeneratedQuestion]:
    """
    Generates the phrase-pair questions for one assessment.

    Args:
        config: The loaded phrase configuration.
        count: Number of questions wanted. Defaults to the configuration's recommended count.
        rng: Random source; pass a seeded random.Random for reproducible output.

    Raises:
        ValueError: count is smaller than 1, or smaller than the number of dimensions
            when generating dimension-focused questions.
        InvalidDimensionError: a dimension references a missing category.
        InsufficientPhrasesError: not even one valid pair can be produced.
    """
    if count is not None and count < 1:
        raise ValueError(f"Question count must be at least 1, got {count}")

    pool_size = len(config.flatten_phrases())
    if pool_size < 2:
        raise InsufficientPhrasesError(f"Phrase pool has {pool_size} phrase(s); at least 2 are needed for a pair")

    validate_dimensions(config)

    rng = rng or random.Random()
    question_count = count if count is not None else config.recommended_question_count()

    if uses_dimension_focus(config):
        dimension_count = len(config.dimensions)
        if question_count < dimension_count:
            # Each dimension needs at least one pair
            raise ValueError(
                f"Question count must be at least {dimension_count} (one per dimension) "
                f"for dimension-focused generation, got {question_count}"
            )
        logger.info(f"Generating {question_count} questions using dimension-focused strategy")
        questions = _generate_dimension_focused_questions(config, question_count, rng)
    else:
        strategy = config.settings.pairing_strategy
        if strategy != PairingStrategy.RANDOM:
            logger.debug(f"Pairing strategy '{strategy.value}' not applicable here; falling back to random pairing.")
        logger.info(f"Generating {question_count} questions using random strategy")
        questions = _generate_random_questions(config, question_count, rng)

    if not questions:
        raise InsufficientPhrasesError(
            f"Could not produce any question for a requested count of {question_count}"
        )
    return questions


def generate_seeded_questions(
    config: PhraseConfig, seed: Union[str, int], count: Optional[int] = None
) -> List[GeneratedQuestion]:
    """Same seed and configuration always yield the same questions."""
    return generate_questions(config, count=count, rng=random.Random(seed))
