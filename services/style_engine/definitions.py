# services/style_engine/definitions.py
# Static defaults for the Kinetic Style Assessment phrase configuration.

# --- Assessment settings used when the document omits them ---
DEFAULT_SETTINGS = {
    "default_question_count": 5,
    "min_question_count": 1,
    "max_question_count": 20,
    "allow_duplicate_phrases": False,
    "pairing_strategy": "random",
    "ensure_equal_dimension_coverage": False,
    "neutral_threshold": 0.1,         # half-width of the neutral band on each axis
    "x_axis_dimension": "Uncertainty Attitude",   # -1 Reason, +1 Play
    "y_axis_dimension": "Possibility Attitude",   # -1 Structure, +1 Openness
}

# --- Style definitions keyed by position on the 2D map ---
# Used only when the configuration document carries no styleDefinitions block.
DEFAULT_STYLE_DEFINITIONS = {
    "quadrant1": {
        "name": "Adaptive Collaborator",
        "description": "Flexible approach with collaborative teamwork",
        "coordinates": {"x": "positive", "y": "positive"},
        "traits": ["Flexible", "Collaborative", "Responsive", "Team-oriented"],
    },
    "quadrant2": {
        "name": "Structured Collaborator",
        "description": "Planned approach with collaborative teamwork",
        "coordinates": {"x": "negative", "y": "positive"},
        "traits": ["Organized", "Collaborative", "Methodical", "Team-oriented"],
    },
    "quadrant3": {
        "name": "Structured Leader",
        "description": "Planned approach with individual leadership",
        "coordinates": {"x": "negative", "y": "negative"},
        "traits": ["Organized", "Independent", "Methodical", "Self-directed"],
    },
    "quadrant4": {
        "name": "Adaptive Leader",
        "description": "Flexible approach with individual leadership",
        "coordinates": {"x": "positive", "y": "negative"},
        "traits": ["Flexible", "Independent", "Responsive", "Self-directed"],
    },
    "borderNorth": {
        "name": "Collaborative Bridge-Builder",
        "description": "Balance between structured and adaptive with collaborative focus",
        "coordinates": {"x": "neutral", "y": "positive"},
        "traits": ["Diplomatic", "Collaborative", "Balanced", "Harmonizing"],
    },
    "borderSouth": {
        "name": "Independent Strategist",
        "description": "Balance between structured and adaptive with independent focus",
        "coordinates": {"x": "neutral", "y": "negative"},
        "traits": ["Strategic", "Independent", "Balanced", "Accountable"],
    },
    "borderWest": {
        "name": "Systematic Facilitator",
        "description": "Structured approach with balanced individual/collaborative style",
        "coordinates": {"x": "negative", "y": "neutral"},
        "traits": ["Organized", "Balanced", "Systematic", "Facilitating"],
    },
    "borderEast": {
        "name": "Agile Catalyst",
        "description": "Adaptive approach with balanced individual/collaborative style",
        "coordinates": {"x": "positive", "y": "neutral"},
        "traits": ["Adaptive", "Balanced", "Energizing", "Catalytic"],
    },
    "center": {
        "name": "Dynamic Integrator",
        "description": "Exceptional balance across all working styles",
        "coordinates": {"x": "neutral", "y": "neutral"},
        "traits": ["Versatile", "Adaptive", "Balanced", "Integrative"],
    },
}

# --- Intensity bands for a single dimension balance (upper bounds, exclusive) ---
DIMENSION_INTENSITY_BANDS = [
    (0.1, "neutral"),
    (0.3, "slight"),
    (0.5, "moderate"),
    (0.7, "strong"),
]
STRONGEST_INTENSITY = "very strong"

# --- Minimal document served when the configured file cannot be read ---
FALLBACK_PHRASE_CONFIG = {
    "phraseSets": [
        {
            "category": "Planning vs Flexibility",
            "dimension": "Decision Making Style",
            "phrases": [
                "I prefer detailed plans and schedules",
                "I prefer flexibility and spontaneity",
                "I like structured approaches",
                "I adapt as situations change",
            ],
        },
        {
            "category": "Leadership vs Collaboration",
            "dimension": "Work Interaction Style",
            "phrases": [
                "I like to take charge in groups",
                "I prefer collaborative decision-making",
                "I naturally assume leadership roles",
                "I value consensus building",
            ],
        },
    ],
    "metadata": {
        "version": "1.0.0-fallback",
        "lastUpdated": "",
        "totalPhrases": 8,
        "categories": 2,
        "description": "Fallback phrase configuration",
    },
}
