"""
Semantic grouper: maps a query onto a movement pattern.

Each token is checked against every group's keywords in both directions
("pressing" contains "press", "ab" is contained in "abs"). The group with
the most matching tokens wins; ties go to the group listed first in
config.mapping.SEMANTIC_GROUPS.
"""

from typing import Optional
import structlog

from config.mapping import SEMANTIC_GROUPS, SEMANTIC_GROUP_DEFAULTS, SEMANTIC_CONFIDENCE
from utils.text_utils import tokenize

logger = structlog.get_logger(__name__)


def _token_matches(token: str, keywords: tuple[str, ...]) -> bool:
    return any(keyword in token or token in keyword for keyword in keywords)


class SemanticGrouper:
    """Classifies queries into one of the fixed movement-pattern groups."""

    def __init__(
        self,
        groups: dict[str, tuple[str, ...]] = SEMANTIC_GROUPS,
        defaults: dict[str, str] = SEMANTIC_GROUP_DEFAULTS
    ):
        self.groups = groups
        self.defaults = defaults

    def best_group(self, query: str) -> Optional[str]:
        """Name of the best matching group, or None if no token matches."""
        tokens = tokenize(query)

        best_group = None
        best_count = 0
        for group, keywords in self.groups.items():
            count = sum(1 for token in tokens if _token_matches(token, keywords))
            if count > best_count:
                best_group = group
                best_count = count

        return best_group

    def classify(self, query: str) -> Optional[tuple[str, float]]:
        """
        Classify query into a default exercise.

        Returns:
            (exercise_id, confidence), or None when no group matches
        """
        group = self.best_group(query)
        if group is None:
            return None

        logger.debug("semantic_group_matched", query=query, group=group)
        return self.defaults[group], SEMANTIC_CONFIDENCE
