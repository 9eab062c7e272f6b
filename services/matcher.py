"""One-to-one proximity matching between two cleaned reading streams."""

from __future__ import annotations

from enum import Enum
from typing import List, Sequence, Set

import numpy as np
from scipy.optimize import linear_sum_assignment

from models.records import Match, SensorReading
from services.geo import distance_between


class MatchStrategy(str, Enum):
    """Assignment strategies understood by :class:`Matcher`."""

    greedy = "greedy"
    optimal = "optimal"


def match_one_to_one_closest(
    a: Sequence[SensorReading],
    b: Sequence[SensorReading],
    threshold: float,
) -> List[Match]:
    """Greedy first-come nearest neighbour assignment.

    Readings in ``a`` are visited in order and each one claims the closest
    still-unclaimed reading in ``b`` within ``threshold`` meters. Earlier
    claims are never revisited, so two readings competing for the same
    partner are settled in favour of whichever comes first in ``a``. Equal
    distances go to the candidate listed first in ``b``.

    The result is sorted by ``id1``.
    """
    if threshold <= 0:
        return []

    used: Set[int] = set()
    matches: List[Match] = []

    for first in a:
        best_index = -1
        best_distance = float("inf")

        for index, second in enumerate(b):
            if index in used:
                continue
            distance = distance_between(first, second)
            if distance <= threshold and distance < best_distance:
                best_distance = distance
                best_index = index

        if best_index != -1:
            used.add(best_index)
            matches.append(Match(first.id, b[best_index].id, best_distance))

    matches.sort(key=lambda match: match.id1)
    return matches


def match_optimal(
    a: Sequence[SensorReading],
    b: Sequence[SensorReading],
    threshold: float,
) -> List[Match]:
    """Minimum total-distance assignment among pairs within ``threshold``.

    Unlike the greedy strategy the outcome does not depend on input order:
    it pairs as many readings as possible and, among those pairings, picks
    the one with the smallest summed distance.
    """
    if threshold <= 0 or not a or not b:
        return []

    cost = np.array([[distance_between(first, second) for second in b] for first in a], dtype=float)
    within = cost <= threshold
    if not within.any():
        return []

    # Larger than any achievable sum of in-range distances.
    penalty = float(cost[within].sum()) + 1.0
    rows, cols = linear_sum_assignment(np.where(within, cost, penalty))

    matches = [
        Match(a[row].id, b[col].id, float(cost[row, col]))
        for row, col in zip(rows, cols)
        if within[row, col]
    ]
    matches.sort(key=lambda match: match.id1)
    return matches


class Matcher:
    """Pure matching component that can be unit tested in isolation."""

    def __init__(self, strategy: MatchStrategy = MatchStrategy.greedy) -> None:
        self.strategy = MatchStrategy(strategy)

    def match(
        self,
        a: Sequence[SensorReading],
        b: Sequence[SensorReading],
        threshold: float,
    ) -> List[Match]:
        if self.strategy is MatchStrategy.optimal:
            return match_optimal(a, b, threshold)
        return match_one_to_one_closest(a, b, threshold)
