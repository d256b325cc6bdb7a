"""
Unit tests for the workout text parser.

Run: pytest tests/unit/test_workout_text_parser.py -v
"""

from parsers.workout_text_parser import extract_exercise_candidates


class TestExtractExerciseCandidates:
    """Tests for extract_exercise_candidates()"""

    def test_semicolon_separated(self):
        candidates = extract_exercise_candidates(
            "Push Day", "Bench press 3x8; Overhead press 3x10"
        )

        assert candidates == ["Push Day", "Bench press 3x8", "Overhead press 3x10"]

    def test_bullets_and_newlines(self):
        candidates = extract_exercise_candidates("Legs", "• Squat\n• Lunge\r\n· Plank")

        assert candidates == ["Legs", "Squat", "Lunge", "Plank"]

    def test_pipes_and_hyphens(self):
        candidates = extract_exercise_candidates("Warm up - Jumping Jacks | Burpees")

        assert candidates == ["Warm up", "Jumping Jacks", "Burpees"]

    def test_short_pieces_dropped(self):
        candidates = extract_exercise_candidates("Abs", "OHP; Plank")

        assert candidates == ["Plank"]

    def test_length_bounds(self):
        longest = "x" * 99
        too_long = "y" * 100

        candidates = extract_exercise_candidates("Day 1", f"{longest}\n{too_long}")

        assert candidates == ["Day 1", longest]

    def test_duplicates_keep_first(self):
        candidates = extract_exercise_candidates("Squat", "Squat\nLunge\n  Squat  ")

        assert candidates == ["Squat", "Lunge"]

    def test_title_and_description_not_merged(self):
        candidates = extract_exercise_candidates("Upper Body", "Dumbbell Row")

        assert candidates == ["Upper Body", "Dumbbell Row"]

    def test_empty_input(self):
        assert extract_exercise_candidates("", "") == []
        assert extract_exercise_candidates(None, None) == []
