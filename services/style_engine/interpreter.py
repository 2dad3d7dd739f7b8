import logging
from typing import Any, Dict, List, Optional

from services.style_engine.definitions import DIMENSION_INTENSITY_BANDS, STRONGEST_INTENSITY
from services.style_engine.models import (
    AssessmentScore,
    Coordinates,
    DimensionInterpretation,
    DimensionScore,
    PhraseConfig,
    Position,
    StyleInterpretation,
)

logger = logging.getLogger(__name__)

# (x side, y side) -> position; sides are -1, 0 (neutral band) or +1
_POSITIONS = {
    (0, 0): Position.CENTER,
    (0, 1): Position.BORDER_NORTH,
    (0, -1): Position.BORDER_SOUTH,
    (-1, 0): Position.BORDER_WEST,
    (1, 0): Position.BORDER_EAST,
    (1, 1): Position.QUADRANT1,
    (-1, 1): Position.QUADRANT2,
    (-1, -1): Position.QUADRANT3,
    (1, -1): Position.QUADRANT4,
}


def _side(value: float, neutral_threshold: float) -> int:
    if abs(value) <= neutral_threshold:
        return 0
    return 1 if value > 0 else -1


def classify_position(x: float, y: float, neutral_threshold: float = 0.1) -> Position:
    """Maps a point to one of the 9 regions: center, four borders, four quadrants."""
    return _POSITIONS[(_side(x, neutral_threshold), _side(y, neutral_threshold))]


def interpret_coordinates(
    coordinates: Coordinates,
    config: PhraseConfig,
    neutral_threshold: Optional[float] = None,
) -> StyleInterpretation:
    """
    Resolves coordinates to a named style from the configuration's style table.

    A region without a configured definition gets a placeholder derived from its label.
    """
    threshold = config.settings.neutral_threshold if neutral_threshold is None else neutral_threshold
    position = classify_position(coordinates.x, coordinates.y, threshold)

    definition = config.styles.get(position)
    if definition is None:
        logger.warning(f"No style definition for position '{position.value}'; using placeholder.")
        return StyleInterpretation(
            position=position,
            style=f"{position.value} Style",
            description=f"Style at position {position.value}",
            traits=[],
        )
    return StyleInterpretation(
        position=position,
        style=definition.name,
        description=definition.description or f"Style at position {position.value}",
        traits=list(definition.traits),
    )


def interpret_dimension_score(dimension_score: DimensionScore) -> DimensionInterpretation:
    """Human-readable reading of one dimension balance."""
    balance = dimension_score.dimension_balance
    magnitude = abs(balance)

    intensity = STRONGEST_INTENSITY
    for upper_bound, label in DIMENSION_INTENSITY_BANDS:
        if magnitude < upper_bound:
            intensity = label
            break

    if intensity == "neutral":
        primary = "balanced"
        description = f"Balanced between {dimension_score.category1} and {dimension_score.category2}"
    else:
        primary = dimension_score.category1 if balance < 0 else dimension_score.category2
        description = f"{intensity} preference for {primary}"

    return DimensionInterpretation(
        dimension=dimension_score.dimension,
        primary=primary,
        intensity=intensity,
        description=description,
    )


def interpret_dimensions(score: AssessmentScore) -> List[DimensionInterpretation]:
    return [interpret_dimension_score(ds) for ds in score.dimension_scores]


def to_result_record(
    score: AssessmentScore,
    interpretation: StyleInterpretation,
    custom_code: Optional[str] = None,
) -> Dict[str, Any]:
    """The plain record handed to persistence."""
    return {
        "x": score.coordinates.x,
        "y": score.coordinates.y,
        "style_name": interpretation.style,
        "completed_at": score.completed_at,
        "custom_code": custom_code,
    }
