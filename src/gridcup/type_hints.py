"""Type hints used in Grid Cup."""

from typing import List, Literal, Optional, Tuple, Union

# Phase type literals (for type hints)
Phase = Literal["qualifying", "intermediate", "pre_finale", "finale", "complete"]

# Phases that select a tier weight column
DrawPhase = Literal["qualifying", "intermediate", "pre_finale", "finale"]

# One staged row: (nickname, finish_position, is_manual_override, manual_score).
# The last two items may be omitted.
StagedRow = Union[
    Tuple[str, int],
    Tuple[str, int, bool],
    Tuple[str, int, bool, Optional[int]],
]

# Weights of a tier for (qualifying, intermediate, finale)
TierWeights = Tuple[float, float, float]

# Ordered nicknames per series, series 1 first
Grouping = List[List[str]]

# (next_series, next_slot)
Placement = Tuple[int, int]
