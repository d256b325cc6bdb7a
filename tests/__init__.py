"""
Test suite for Exercise Resolver.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_exercise_mapping_service.py -v
"""
