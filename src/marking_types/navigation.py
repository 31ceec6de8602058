"""
Navigation vocabulary shared by the engine and its callers.

A dimension is one level of the marking tree. The wire names are the keys the
client sends in its querystring, so they double as the enum values.
"""

from enum import Enum
from typing import Dict, List, Optional, Tuple
from pydantic import BaseModel, Field


class Dimension(str, Enum):
    COHORT = "cohortid"
    COURSE = "courseid"
    ACTIVITY = "coursemoduleid"
    GROUP = "groupid"
    DISCUSSION = "discussionid"
    QUESTION = "questionid"
    STUDENT = "userid"


class TreeKind(str, Enum):
    """Which tree is being built: unmarked work, or the settings editor."""
    MARKING = "marking"
    CONFIG = "config"


# Position of each dimension in the fixed hierarchy. Content sub-dimensions
# share a level because at most one of them applies to a given activity.
DIMENSION_RANK = {
    Dimension.COHORT: 0,
    Dimension.COURSE: 1,
    Dimension.ACTIVITY: 2,
    Dimension.GROUP: 3,
    Dimension.DISCUSSION: 4,
    Dimension.QUESTION: 4,
    Dimension.STUDENT: 5,
}

# Dimensions that must already be resolved before a dimension may be used.
REQUIRED_ANCESTORS = {
    Dimension.COHORT: frozenset(),
    Dimension.COURSE: frozenset(),
    Dimension.ACTIVITY: frozenset({Dimension.COURSE}),
    Dimension.GROUP: frozenset({Dimension.COURSE, Dimension.ACTIVITY}),
    Dimension.DISCUSSION: frozenset({Dimension.COURSE, Dimension.ACTIVITY}),
    Dimension.QUESTION: frozenset({Dimension.COURSE, Dimension.ACTIVITY}),
    Dimension.STUDENT: frozenset({Dimension.COURSE, Dimension.ACTIVITY}),
}

CONFIG_DIMENSIONS = frozenset({Dimension.COURSE, Dimension.ACTIVITY})


class NavigationPath(BaseModel):
    """
    Already-resolved dimension values plus the dimension to enumerate next.

    Hierarchy rules are checked by the engine, not here, so that a bad path
    surfaces as the engine's own error type.
    """
    values: Dict[Dimension, int] = Field(default_factory=dict)
    next_dimension: Dimension

    def ordered(self) -> List[Tuple[Dimension, int]]:
        """Resolved values from the top of the hierarchy down."""
        return sorted(self.values.items(), key=lambda item: DIMENSION_RANK[item[0]])

    def get(self, dimension: Dimension) -> Optional[int]:
        return self.values.get(dimension)

