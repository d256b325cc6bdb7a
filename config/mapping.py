"""
Exercise mapping constants.

Thresholds, stage confidences and fixed lookup tables used by the
resolution pipeline. These values are hand-tuned; stored mappings and
client review flows depend on them staying exactly as they are.
"""

# =============================================================================
# SIMILARITY THRESHOLDS
# =============================================================================

# Similarity scores at or below this never win the similarity stage
SIMILARITY_MIN_SCORE = 0.7

# Above this the match is reported as "exact" instead of "fuzzy"
SIMILARITY_EXACT_SCORE = 0.9

# Similarity matches below this still need a human to confirm them
SIMILARITY_REVIEW_SCORE = 0.85


# =============================================================================
# STAGE CONFIDENCES
# =============================================================================

USER_MAPPING_BOOST = 0.1
USER_MAPPING_MAX_CONFIDENCE = 0.95

CONTEXTUAL_CONFIDENCE = 0.6
SEMANTIC_CONFIDENCE = 0.5
KEYWORD_ALTERNATIVE_CONFIDENCE = 0.4
POPULAR_ALTERNATIVE_CONFIDENCE = 0.3
FALLBACK_CONFIDENCE = 0.2

# Confidence stored on a mapping created from a user correction
CORRECTION_CONFIDENCE = 0.9


# =============================================================================
# ALTERNATIVES
# =============================================================================

KEYWORD_ALTERNATIVES_LIMIT = 2
KEYWORD_ALTERNATIVES_EXHAUSTIVE_LIMIT = 5

# Exhaustive lists below this size get backfilled with popular exercises
MIN_EXHAUSTIVE_ALTERNATIVES = 3

# Backfill stops once the list reaches this size
MAX_EXHAUSTIVE_ALTERNATIVES = 5

POPULAR_EXERCISE_IDS = ("push-up", "squat", "plank", "lunge", "dumbbell-row")

FALLBACK_EXERCISE_ID = "squat"


# =============================================================================
# CONTEXTUAL MATCHING
# =============================================================================

# Tokens this short carry no signal ("db", "x3", ...)
MIN_CONTEXT_TOKEN_LENGTH = 3

CONTEXT_STOP_WORDS = frozenset({
    "the", "and", "for", "with", "set", "rep", "reps", "sets",
    "workout", "exercise",
})


# =============================================================================
# SEMANTIC GROUPS
# =============================================================================
# Order matters: on equal keyword counts the earlier group wins.

SEMANTIC_GROUPS: dict[str, tuple[str, ...]] = {
    "pushing": ("push", "press", "chest", "shoulder", "tricep"),
    "pulling": ("pull", "row", "lat", "back", "bicep"),
    "squatting": ("squat", "leg", "quad", "thigh", "knee"),
    "hinging": ("deadlift", "hip", "glute", "hamstring", "posterior"),
    "core": ("plank", "core", "ab", "abdominal", "stability"),
    "cardio": ("run", "jog", "cycle", "bike", "cardio", "aerobic"),
}

SEMANTIC_GROUP_DEFAULTS: dict[str, str] = {
    "pushing": "push-up",
    "pulling": "dumbbell-row",
    "squatting": "squat",
    "hinging": "deadlift",
    "core": "plank",
    "cardio": "jumping-jacks",
}


# =============================================================================
# STORAGE KEYS
# =============================================================================

STORAGE_KEY_USER_MAPPINGS = "exercise_user_mappings"
STORAGE_KEY_UNMAPPED = "exercise_unmapped_cache"
STORAGE_KEY_STATISTICS = "exercise_mapping_stats"
