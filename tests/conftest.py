import copy

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from services.style_engine.loader import load_phrase_config_data
from services.style_engine.models import GeneratedQuestion, PhraseConfig
from src.db.database import init_db

# Two dimensions, four categories, four phrases each
BASE_CONFIG_DATA = {
    "metadata": {"version": "test-1.0", "description": "Test phrase pool"},
    "dimensions": [
        {"name": "Uncertainty Attitude", "categories": ["Reason", "Play"]},
        {"name": "Possibility Attitude", "categories": ["Structure", "Openness"]},
    ],
    "phraseSets": [
        {
            "category": "Reason",
            "dimension": "Uncertainty Attitude",
            "phrases": ["R1 think first", "R2 want evidence", "R3 split problems", "R4 trust plans"],
        },
        {
            "category": "Play",
            "dimension": "Uncertainty Attitude",
            "phrases": ["P1 try things", "P2 enjoy surprises", "P3 improvise", "P4 follow curiosity"],
        },
        {
            "category": "Structure",
            "dimension": "Possibility Attitude",
            "phrases": ["S1 narrow options", "S2 clear deadlines", "S3 one at a time", "S4 routines"],
        },
        {
            "category": "Openness",
            "dimension": "Possibility Attitude",
            "phrases": ["O1 keep options", "O2 welcome change", "O3 juggle projects", "O4 new ways"],
        },
    ],
    "assessmentSettings": {
        "defaultQuestionCount": 4,
        "maxQuestionCount": 8,
        "pairingStrategy": "random",
    },
}


@pytest.fixture
def config_data():
    """A fresh, mutable copy of the base phrase document."""
    return copy.deepcopy(BASE_CONFIG_DATA)


@pytest.fixture
def make_config(config_data):
    """Factory: base document with assessment settings overridden (camelCase keys)."""
    def _make(**settings) -> PhraseConfig:
        data = copy.deepcopy(config_data)
        data["assessmentSettings"].update(settings)
        return load_phrase_config_data(data)
    return _make


@pytest.fixture
def phrase_config(make_config) -> PhraseConfig:
    return make_config()


@pytest.fixture
def dimension_focused_config(make_config) -> PhraseConfig:
    return make_config(pairingStrategy="dimension-focused", ensureEqualDimensionCoverage=True)


@pytest.fixture
def make_question():
    """Factory: a question showing two given phrases, left then right."""
    def _make(config: PhraseConfig, number: int, left: str, right: str) -> GeneratedQuestion:
        pool = config.flatten_phrases()
        left_index, right_index = pool.index(left), pool.index(right)
        return GeneratedQuestion(
            id=f"q{number}",
            left_phrase=left,
            right_phrase=right,
            left_phrase_index=left_index,
            right_phrase_index=right_index,
            pair_label=f"{min(left_index, right_index)}-vs-{max(left_index, right_index)}",
        )
    return _make


@pytest.fixture
def quadrant3_questions(phrase_config, make_question):
    """Reason always on the left of Play, Structure always on the left of Openness."""
    return [
        make_question(phrase_config, 1, "R1 think first", "P1 try things"),
        make_question(phrase_config, 2, "R2 want evidence", "P2 enjoy surprises"),
        make_question(phrase_config, 3, "S1 narrow options", "O1 keep options"),
        make_question(phrase_config, 4, "S2 clear deadlines", "O2 welcome change"),
    ]


# --- Database ---

@pytest.fixture
def db_engine():
    """In-memory SQLite shared by every connection of the test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    TestingSessionLocal = sessionmaker(bind=db_engine, autoflush=False, autocommit=False)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
