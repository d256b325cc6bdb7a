"""
Workout text parser.

Splits an AI-generated workout (title + description) into candidate
exercise-name strings. Deliberately loose: the mapping service decides
which candidates are real exercises.
"""

import re

# Newlines, semicolons, pipes, hyphens and bullet characters separate candidates
CANDIDATE_SEPARATORS = re.compile(r"[\n\r;|\-•·]")

MIN_CANDIDATE_LENGTH = 4
MAX_CANDIDATE_LENGTH = 99


def extract_exercise_candidates(title: str, description: str = "") -> list[str]:
    """
    Extract candidate exercise names from a workout.

    Examples:
        ("Push Day", "Bench press 3x8; Overhead press 3x10")
            → ["Push Day", "Bench press 3x8", "Overhead press 3x10"]
        ("Legs", "• Squat\\n• Lunge")
            → ["Legs", "Squat", "Lunge"]

    Args:
        title: Workout title
        description: Free-text workout description

    Returns:
        Unique candidates in first-seen order
    """
    combined = f"{title or ''}\n{description or ''}"

    candidates: list[str] = []
    seen: set[str] = set()
    for piece in CANDIDATE_SEPARATORS.split(combined):
        cleaned = piece.strip()
        if not (MIN_CANDIDATE_LENGTH <= len(cleaned) <= MAX_CANDIDATE_LENGTH):
            continue
        if cleaned in seen:
            continue
        seen.add(cleaned)
        candidates.append(cleaned)

    return candidates
