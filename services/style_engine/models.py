from datetime import datetime
from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from services.style_engine.definitions import DEFAULT_SETTINGS, DEFAULT_STYLE_DEFINITIONS


class CamelModel(BaseModel):
    """Base model: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Phrase configuration document ---

class PairingStrategy(str, Enum):
    RANDOM = "random"
    CATEGORY_MIXED = "category-mixed"
    CATEGORY_EXCLUSIVE = "category-exclusive"
    DIMENSION_FOCUSED = "dimension-focused"


class Position(str, Enum):
    CENTER = "center"
    BORDER_NORTH = "borderNorth"
    BORDER_SOUTH = "borderSouth"
    BORDER_EAST = "borderEast"
    BORDER_WEST = "borderWest"
    QUADRANT1 = "quadrant1"
    QUADRANT2 = "quadrant2"
    QUADRANT3 = "quadrant3"
    QUADRANT4 = "quadrant4"


AxisSide = Literal["positive", "negative", "neutral"]


class Dimension(CamelModel):
    name: str
    description: str = ""
    categories: List[str]


class PhraseSet(CamelModel):
    category: str
    dimension: str = ""
    phrases: List[str]


class StyleCoordinates(CamelModel):
    x: AxisSide
    y: AxisSide


class StyleDefinition(CamelModel):
    name: str
    description: str = ""
    coordinates: Optional[StyleCoordinates] = None
    traits: List[str] = Field(default_factory=list)


class AssessmentSettings(CamelModel):
    default_question_count: int = Field(DEFAULT_SETTINGS["default_question_count"], ge=1)
    min_question_count: int = Field(DEFAULT_SETTINGS["min_question_count"], ge=1)
    max_question_count: int = Field(DEFAULT_SETTINGS["max_question_count"], ge=1)
    allow_duplicate_phrases: bool = DEFAULT_SETTINGS["allow_duplicate_phrases"]
    pairing_strategy: PairingStrategy = PairingStrategy(DEFAULT_SETTINGS["pairing_strategy"])
    ensure_equal_dimension_coverage: bool = DEFAULT_SETTINGS["ensure_equal_dimension_coverage"]
    neutral_threshold: float = Field(DEFAULT_SETTINGS["neutral_threshold"], ge=0.0, lt=1.0)
    x_axis_dimension: str = DEFAULT_SETTINGS["x_axis_dimension"]
    y_axis_dimension: str = DEFAULT_SETTINGS["y_axis_dimension"]


class ConfigMetadata(CamelModel):
    version: str
    last_updated: str = ""  # kept as string, the document is hand-edited
    total_phrases: Optional[int] = None
    categories: Optional[int] = None
    dimensions: Optional[int] = None
    description: str = ""


class PhraseConfig(CamelModel):
    """The phrase configuration document. Read-only once loaded."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    dimensions: Optional[List[Dimension]] = None
    phrase_sets: List[PhraseSet]
    assessment_settings: Optional[AssessmentSettings] = None
    style_definitions: Optional[Dict[Position, StyleDefinition]] = None
    metadata: ConfigMetadata

    def flatten_phrases(self) -> List[str]:
        """All phrases in category order. A phrase's index here is its identity."""
        return [phrase for phrase_set in self.phrase_sets for phrase in phrase_set.phrases]

    def categories(self) -> List[str]:
        return [phrase_set.category for phrase_set in self.phrase_sets]

    def phrases_for_category(self, category: str) -> List[str]:
        for phrase_set in self.phrase_sets:
            if phrase_set.category == category:
                return list(phrase_set.phrases)
        return []

    def category_of(self, phrase: str) -> Optional[str]:
        for phrase_set in self.phrase_sets:
            if phrase in phrase_set.phrases:
                return phrase_set.category
        return None

    @property
    def settings(self) -> AssessmentSettings:
        return self.assessment_settings or AssessmentSettings()

    @property
    def styles(self) -> Dict[Position, StyleDefinition]:
        """Configured style definitions, or the built-in table when none are configured."""
        if self.style_definitions is not None:
            return self.style_definitions
        return {
            Position(key): StyleDefinition.model_validate(value)
            for key, value in DEFAULT_STYLE_DEFINITIONS.items()
        }

    def max_possible_questions(self) -> int:
        total = len(self.flatten_phrases())
        settings = self.settings
        if settings.allow_duplicate_phrases:
            return min(settings.max_question_count, total * (total - 1) // 2)
        return min(settings.max_question_count, total // 2)

    def recommended_question_count(self) -> int:
        return min(self.settings.default_question_count, self.max_possible_questions())


# --- Generated questions and responses ---

class GeneratedQuestion(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    left_phrase: str
    right_phrase: str
    left_phrase_index: int
    right_phrase_index: int
    pair_label: str
    phase: Optional[int] = None  # dimension-focused strategy only
    dimension: Optional[str] = None


NEUTRAL_SLIDER_VALUE = 5
MAX_PREFERENCE_STRENGTH = 5


class Response(CamelModel):
    question_id: str
    # "value" or the older "sliderValue" key; 0..10 with 5 as no preference
    value: int = Field(..., ge=0, le=10, validation_alias=AliasChoices("value", "sliderValue"))

    @classmethod
    def neutral(cls, question_id: str) -> "Response":
        return cls(question_id=question_id, value=NEUTRAL_SLIDER_VALUE)


class Preference(CamelModel):
    preferred_category: Optional[str]
    strength: int = Field(..., ge=0, le=MAX_PREFERENCE_STRENGTH)
    left_category: str
    right_category: str


class ScoredResponse(CamelModel):
    question_id: str
    value: int
    left_phrase: str
    right_phrase: str
    preference: Preference


# --- Scores ---

class CategoryScore(CamelModel):
    category: str
    dimension: str
    raw_score: float
    normalized_score: float
    question_count: int


class DimensionScore(CamelModel):
    dimension: str
    category1: str
    category2: str
    category1_score: float
    category2_score: float
    dimension_balance: float
    total_questions: int


class Coordinates(CamelModel):
    x: float = Field(0.0, ge=-1.0, le=1.0)
    y: float = Field(0.0, ge=-1.0, le=1.0)


class AssessmentScore(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    category_scores: List[CategoryScore]
    dimension_scores: List[DimensionScore]
    coordinates: Coordinates
    total_questions: int
    completed_at: datetime


class StyleInterpretation(CamelModel):
    position: Position
    style: str
    description: str
    traits: List[str]


Intensity = Literal["neutral", "slight", "moderate", "strong", "very strong"]


class DimensionInterpretation(CamelModel):
    dimension: str
    primary: str
    intensity: Intensity
    description: str


# Custom Error Classes
class InsufficientPhrasesError(ValueError):
    """The phrase pool cannot yield the pairs needed for an assessment."""
    pass

class InvalidDimensionError(ValueError):
    """A dimension is malformed or references a category that does not exist."""
    pass

class UnknownPhraseError(ValueError):
    """A response references a question or phrase that resolves to no category."""
    pass

class InvalidResponseError(ValueError):
    """Response data that cannot be scored (e.g. two answers for one question)."""
    pass
