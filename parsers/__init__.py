"""
Free-text parsers module.
"""

from parsers.workout_text_parser import extract_exercise_candidates

__all__ = [
    "extract_exercise_candidates",
]
