import json
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from services.style_engine.loader import (
    ConfigValidationError,
    load_fallback_config,
    load_phrase_config_data,
    load_phrase_config_from_file,
    load_phrase_config_or_fallback,
    summarize_config,
)
from services.style_engine.models import InvalidDimensionError, PairingStrategy, Position

ASSET_CONFIG_PATH = "assets/phrases.yml"


# Helper function to create temporary YAML files for testing
def create_temp_yaml(tmp_path: Path, filename: str, content: dict) -> str:
    filepath = tmp_path / filename
    with open(filepath, "w") as f:
        yaml.dump(content, f)
    return str(filepath)


# --- Loading from files ---

def test_load_bundled_asset():
    config = load_phrase_config_from_file(ASSET_CONFIG_PATH)
    assert config.metadata.version == "2.1.0"
    assert config.categories() == ["Reason", "Play", "Structure", "Openness"]
    assert len(config.flatten_phrases()) == 24
    assert config.settings.pairing_strategy == PairingStrategy.DIMENSION_FOCUSED
    assert config.settings.ensure_equal_dimension_coverage is True
    assert len(config.styles) == 9
    assert config.styles[Position.QUADRANT3].name == "Focused"


def test_load_yaml_file(tmp_path, config_data):
    path = create_temp_yaml(tmp_path, "phrases.yml", config_data)
    config = load_phrase_config_from_file(path)
    assert config.metadata.version == "test-1.0"
    assert len(config.phrase_sets) == 4


def test_load_json_file(tmp_path, config_data):
    path = tmp_path / "phrases.json"
    path.write_text(json.dumps(config_data), encoding="utf-8")
    config = load_phrase_config_from_file(str(path))
    assert config.categories() == ["Reason", "Play", "Structure", "Openness"]


def test_missing_file_raises():
    with pytest.raises(ConfigValidationError, match="File not found"):
        load_phrase_config_from_file("does/not/exist.yml")


def test_empty_file_raises(tmp_path):
    path = tmp_path / "empty.yml"
    path.write_text("", encoding="utf-8")
    with pytest.raises(ConfigValidationError, match="empty or invalid"):
        load_phrase_config_from_file(str(path))


def test_unparseable_file_raises(tmp_path):
    path = tmp_path / "broken.yml"
    path.write_text("phraseSets: [unclosed", encoding="utf-8")
    with pytest.raises(ConfigValidationError, match="Error parsing"):
        load_phrase_config_from_file(str(path))


# --- Structural validation ---

def test_missing_required_fields_fail_schema(config_data):
    del config_data["phraseSets"]
    with pytest.raises(ValidationError):
        load_phrase_config_data(config_data)


def test_no_phrase_sets(config_data):
    config_data["phraseSets"] = []
    config_data["dimensions"] = []
    with pytest.raises(ConfigValidationError, match="No phrase sets"):
        load_phrase_config_data(config_data)


def test_blank_category(config_data):
    config_data["phraseSets"][0]["category"] = "  "
    with pytest.raises(ConfigValidationError, match="missing category"):
        load_phrase_config_data(config_data)


def test_duplicate_category(config_data):
    config_data["phraseSets"][1]["category"] = "Reason"
    with pytest.raises(ConfigValidationError, match="Duplicate category"):
        load_phrase_config_data(config_data)


def test_category_with_single_phrase(config_data):
    config_data["phraseSets"][2]["phrases"] = ["lonely phrase"]
    with pytest.raises(ConfigValidationError, match="at least 2 phrases"):
        load_phrase_config_data(config_data)


def test_phrase_in_two_categories(config_data):
    config_data["phraseSets"][1]["phrases"][0] = "R1 think first"
    with pytest.raises(ConfigValidationError, match="appears in both"):
        load_phrase_config_data(config_data)


def test_dimension_with_unknown_category(config_data):
    config_data["dimensions"][0]["categories"] = ["Reason", "Intuition"]
    with pytest.raises(InvalidDimensionError, match="Intuition"):
        load_phrase_config_data(config_data)


def test_dimension_needs_exactly_two_categories(config_data):
    config_data["dimensions"][0]["categories"] = ["Reason", "Play", "Structure"]
    with pytest.raises(InvalidDimensionError, match="exactly two"):
        load_phrase_config_data(config_data)


def test_unknown_axis_dimension_only_warns(config_data, caplog):
    config_data["assessmentSettings"]["xAxisDimension"] = "Tempo"
    config = load_phrase_config_data(config_data)
    assert config.settings.x_axis_dimension == "Tempo"
    assert "Tempo" in caplog.text


# --- Fallback ---

def test_fallback_on_missing_file(caplog):
    config = load_phrase_config_or_fallback("does/not/exist.yml")
    assert config.metadata.version == "1.0.0-fallback"
    assert config.dimensions is None
    assert "Using fallback configuration" in caplog.text


def test_fallback_on_invalid_dimensions(tmp_path, config_data):
    config_data["dimensions"][1]["categories"] = ["Structure", "Chaos"]
    path = create_temp_yaml(tmp_path, "bad_dims.yml", config_data)
    config = load_phrase_config_or_fallback(path)
    assert config == load_fallback_config()


def test_fallback_document_is_usable():
    config = load_fallback_config()
    assert len(config.flatten_phrases()) == 8
    assert config.max_possible_questions() == 4
    assert config.recommended_question_count() == 4


# --- Derived values ---

def test_defaults_when_settings_absent(config_data):
    del config_data["assessmentSettings"]
    config = load_phrase_config_data(config_data)
    settings = config.settings
    assert settings.default_question_count == 5
    assert settings.max_question_count == 20
    assert settings.pairing_strategy == PairingStrategy.RANDOM
    assert settings.neutral_threshold == pytest.approx(0.1)
    assert settings.x_axis_dimension == "Uncertainty Attitude"
    assert settings.y_axis_dimension == "Possibility Attitude"


def test_builtin_styles_when_none_configured(phrase_config):
    assert phrase_config.style_definitions is None
    styles = phrase_config.styles
    assert set(styles) == set(Position)
    assert styles[Position.CENTER].name == "Dynamic Integrator"


def test_question_count_limits(make_config):
    # 16 phrases -> 8 disjoint pairs
    assert make_config(maxQuestionCount=20).max_possible_questions() == 8
    assert make_config(maxQuestionCount=6).max_possible_questions() == 6
    assert make_config(defaultQuestionCount=10, maxQuestionCount=20).recommended_question_count() == 8
    assert make_config(allowDuplicatePhrases=True, maxQuestionCount=200).max_possible_questions() == 120


def test_phrase_lookup_helpers(phrase_config):
    assert phrase_config.category_of("O3 juggle projects") == "Openness"
    assert phrase_config.category_of("not a phrase") is None
    assert phrase_config.phrases_for_category("Play")[0] == "P1 try things"
    assert phrase_config.phrases_for_category("Nope") == []


def test_summarize_config(phrase_config):
    summary = summarize_config(phrase_config)
    assert summary["version"] == "test-1.0"
    assert summary["categories"] == ["Reason", "Play", "Structure", "Openness"]
    assert summary["totalPhrases"] == 16
    assert summary["recommendedQuestionCount"] == 4
    assert summary["dimensions"][0] == {
        "name": "Uncertainty Attitude",
        "description": "",
        "categories": ["Reason", "Play"],
    }
    assert summary["settings"]["pairingStrategy"] == "random"
