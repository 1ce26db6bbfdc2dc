"""
Product Name Matching
======================
Suggests known products for a name that has no recorded cost.

Similarity is the length of the longest common contiguous substring of
the lower-cased names. It is only used to *suggest* a cost during the
resolution prompt; ledger lookups stay exact.
"""

from dataclasses import dataclass
from typing import List, Mapping, Optional

import numpy as np

from profitflow.config import MatchConfig
from profitflow.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class Suggestion:
    """A known product offered as a stand-in for an unknown one"""
    name: str
    cost: float
    score: int


def longest_common_substring(a: str, b: str) -> int:
    """
    Length of the longest contiguous substring shared by ``a`` and ``b``.

    Classic dynamic program over the lower-cased inputs, one row of the
    table at a time: cell j of a row is the length of the common suffix
    ending at a[i-1] and b[j-1].
    """
    if not a or not b:
        return 0

    left = np.array([ord(c) for c in a.lower()], dtype=np.int64)
    right = np.array([ord(c) for c in b.lower()], dtype=np.int64)

    previous = np.zeros(len(right) + 1, dtype=np.int64)
    best = 0
    for char in left:
        current = np.zeros_like(previous)
        matches = right == char
        current[1:] = np.where(matches, previous[:-1] + 1, 0)
        row_best = int(current.max())
        if row_best > best:
            best = row_best
        previous = current
    return best


class NameMatcher:
    """
    Ranks candidate products by similarity to a target name.

    Usage:
        matcher = NameMatcher()
        matcher.suggest("Widget Red XL", {"widget-red": 4.0})
        # [Suggestion(name='widget-red', cost=4.0, score=6)]
    """

    def __init__(self, config: Optional[MatchConfig] = None):
        self.config = config or MatchConfig()

    def suggest(self, target: str, candidates: Mapping[str, float]) -> List[Suggestion]:
        """
        Up to ``max_suggestions`` candidates, best score first.

        A candidate qualifies when its common substring with the target is
        longer than ``min_common_length``. Equal scores keep the order of
        ``candidates``.
        """
        matches = []
        for name, cost in candidates.items():
            score = longest_common_substring(target, name)
            if score > self.config.min_common_length:
                matches.append(Suggestion(name=name, cost=cost, score=score))

        matches.sort(key=lambda s: s.score, reverse=True)
        top = matches[:self.config.max_suggestions]
        logger.debug(f"Suggestions for {target!r}: {[s.name for s in top]}")
        return top
