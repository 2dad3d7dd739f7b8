import json
import logging
from pathlib import Path
from typing import Any, Dict, List

import yaml
from pydantic import ValidationError

from services.style_engine.definitions import FALLBACK_PHRASE_CONFIG
from services.style_engine.models import InvalidDimensionError, PhraseConfig

logger = logging.getLogger(__name__)

MIN_PHRASES_PER_CATEGORY = 2


class ConfigValidationError(ValueError):
    """Custom exception for configuration problems not covered by Pydantic."""
    pass


def validate_dimensions(config: PhraseConfig) -> None:
    """
    Checks every dimension names exactly two categories that exist in the document.
    Raises InvalidDimensionError otherwise.
    """
    known_categories = set(config.categories())
    for dimension in config.dimensions or []:
        if len(dimension.categories) != 2:
            raise InvalidDimensionError(
                f"Dimension '{dimension.name}' must reference exactly two categories, "
                f"got {len(dimension.categories)}"
            )
        missing = [c for c in dimension.categories if c not in known_categories]
        if missing:
            raise InvalidDimensionError(
                f"Dimension '{dimension.name}' references unknown categories: {missing}"
            )


def load_phrase_config_data(data: Dict[str, Any]) -> PhraseConfig:
    """
    Validates the raw dictionary data against the PhraseConfig model
    and performs additional custom validations.
    """
    try:
        config = PhraseConfig.model_validate(data)
    except ValidationError as e:
        # Schema issues surface as Pydantic's own error
        raise e

    if not config.phrase_sets:
        raise ConfigValidationError("No phrase sets defined")

    seen_categories = set()
    phrase_owner: Dict[str, str] = {}
    for index, phrase_set in enumerate(config.phrase_sets):
        if not phrase_set.category.strip():
            raise ConfigValidationError(f"Phrase set {index + 1} missing category")
        if phrase_set.category in seen_categories:
            raise ConfigValidationError(f"Duplicate category found: {phrase_set.category}")
        seen_categories.add(phrase_set.category)

        if len(phrase_set.phrases) < MIN_PHRASES_PER_CATEGORY:
            raise ConfigValidationError(
                f"Phrase set '{phrase_set.category}' needs at least {MIN_PHRASES_PER_CATEGORY} phrases"
            )
        for phrase in phrase_set.phrases:
            owner = phrase_owner.get(phrase)
            if owner is not None:
                raise ConfigValidationError(
                    f"Phrase '{phrase}' appears in both '{owner}' and '{phrase_set.category}'"
                )
            phrase_owner[phrase] = phrase_set.category

    validate_dimensions(config)

    if config.dimensions:
        # Axis names that match nothing are legal (that coordinate stays 0) but worth a warning
        dimension_names = {d.name for d in config.dimensions}
        settings = config.settings
        for axis in (settings.x_axis_dimension, settings.y_axis_dimension):
            if axis not in dimension_names:
                logger.warning(f"Axis dimension '{axis}' is not defined; its coordinate will always be 0.")

    return config


def _read_document(path: Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        if path.suffix.lower() == ".json":
            return json.load(f)
        return yaml.safe_load(f)


def load_phrase_config_from_file(file_path: str) -> PhraseConfig:
    """
    Loads a phrase configuration from a YAML or JSON file (by suffix),
    validates it and returns a PhraseConfig object.
    """
    path = Path(file_path)
    try:
        data = _read_document(path)
    except FileNotFoundError:
        raise ConfigValidationError(f"File not found: {file_path}")
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigValidationError(f"Error parsing configuration file {file_path}: {e}")

    if not data:
        raise ConfigValidationError(f"Configuration file is empty or invalid: {file_path}")

    config = load_phrase_config_data(data)
    logger.info(
        f"Loaded phrase configuration {config.metadata.version} from {file_path}: "
        f"{len(config.phrase_sets)} categories, {len(config.flatten_phrases())} phrases"
    )
    return config


def load_fallback_config() -> PhraseConfig:
    return load_phrase_config_data(FALLBACK_PHRASE_CONFIG)


def load_phrase_config_or_fallback(file_path: str) -> PhraseConfig:
    """Like load_phrase_config_from_file, but serves the built-in fallback document on failure."""
    try:
        return load_phrase_config_from_file(file_path)
    except (ConfigValidationError, InvalidDimensionError, ValidationError) as e:
        logger.error(f"Failed to load phrase configuration from {file_path}: {e}. Using fallback configuration.")
        return load_fallback_config()


def summarize_config(config: PhraseConfig) -> Dict[str, Any]:
    """A presentation-friendly summary of the loaded document."""
    settings = config.settings
    dimensions: List[Dict[str, Any]] = [
        {"name": d.name, "description": d.description, "categories": list(d.categories)}
        for d in config.dimensions or []
    ]
    return {
        "version": config.metadata.version,
        "description": config.metadata.description,
        "categories": config.categories(),
        "dimensions": dimensions,
        "totalPhrases": len(config.flatten_phrases()),
        "recommendedQuestionCount": config.recommended_question_count(),
        "maxPossibleQuestions": config.max_possible_questions(),
        "settings": settings.model_dump(by_alias=True, mode="json"),
    }
