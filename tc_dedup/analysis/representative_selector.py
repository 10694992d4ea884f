"""
Module for choosing the test case to keep from a duplicate group.

Two strategies share one tie-break ordering: the heuristic ranks members
directly, the medoid picks the member closest to all others and falls back
to the heuristic order on ties.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from tc_dedup.data.models import TestCase

SimilarityFn = Callable[[str, str], float]


class SelectionStrategy(str, Enum):
    HEURISTIC = "heuristic"
    MEDOID = "medoid"


@dataclass
class Representative:
    test_case_key: str
    reason: str
    strategy: SelectionStrategy

    def to_dict(self) -> Dict[str, str]:
        return {
            "testCaseKey": self.test_case_key,
            "reason": self.reason,
            "strategy": self.strategy.value,
        }


def heuristic_rank_key(test_case: TestCase) -> Tuple[int, int, float]:
    """
    Sort key for the heuristic order (higher is better).

    Criteria, in order of priority:
    1. Automation (automated > mixed > manual/unspecified)
    2. More steps
    3. Most recently modified
    """
    modified = test_case.last_modified.timestamp() if test_case.last_modified else float("-inf")
    return (test_case.automation_state.automation_rank, test_case.get_step_count(), modified)


def heuristic_order(members: Sequence[TestCase]) -> List[TestCase]:
    """Members best-first; equal ranks keep input order."""
    return sorted(members, key=heuristic_rank_key, reverse=True)


def _heuristic_reason(winner: TestCase, runner_up: Optional[TestCase]) -> str:
    steps = winner.get_step_count()
    if runner_up is None:
        return f"Only test case in the group ({steps} steps)"

    best, other = heuristic_rank_key(winner), heuristic_rank_key(runner_up)
    if best[0] != other[0]:
        return (f"{winner.automation_state.value.capitalize()} test case with {steps} steps "
                f"- best foundation for parameterization")
    if best[1] != other[1]:
        return f"Most comprehensive test case with {steps} steps"
    if best[2] != other[2]:
        return f"Most recently modified test case ({winner.last_modified:%Y-%m-%d})"
    return "First listed among equally ranked test cases"


def select_heuristic(
    members: Sequence[TestCase],
    similarity: Optional[SimilarityFn] = None
) -> Representative:
    """
    Pick the representative by automation, then step count, then recency.

    Args:
        members: Test cases of one group (at least one)
        similarity: Unused; accepted so both strategies share a signature

    Returns:
        Representative naming the deciding criterion
    """
    if not members:
        raise ValueError("cannot select a representative from an empty group")

    ordered = heuristic_order(members)
    runner_up = ordered[1] if len(ordered) > 1 else None
    return Representative(
        test_case_key=ordered[0].key,
        reason=_heuristic_reason(ordered[0], runner_up),
        strategy=SelectionStrategy.HEURISTIC,
    )


def select_medoid(
    members: Sequence[TestCase],
    similarity: Optional[SimilarityFn] = None
) -> Representative:
    """
    Pick the member minimizing total distance (100 - similarity) to all others.

    Args:
        members: Test cases of one group (at least one)
        similarity: Pair similarity in percent, by test case keys

    Returns:
        Representative; ties are broken by the heuristic order
    """
    if not members:
        raise ValueError("cannot select a representative from an empty group")
    if similarity is None:
        raise ValueError("medoid selection needs a similarity function")
    if len(members) == 1:
        return Representative(members[0].key, "Only test case in the group", SelectionStrategy.MEDOID)

    distances = {}
    for candidate in members:
        total = sum(100.0 - similarity(candidate.key, other.key) for other in members if other is not candidate)
        distances[candidate.key] = round(total, 6)

    shortest = min(distances.values())
    tied = [tc for tc in members if distances[tc.key] == shortest]
    medoid = heuristic_order(tied)[0]

    average = 100.0 - shortest / (len(members) - 1)
    reason = f"Medoid test case - {average:.1f}% average similarity to the other members"
    if len(tied) > 1:
        reason += f" (tied with {len(tied) - 1} other member(s), broken by automation, step count and recency)"
    return Representative(medoid.key, reason, SelectionStrategy.MEDOID)


_STRATEGIES = {
    SelectionStrategy.HEURISTIC: select_heuristic,
    SelectionStrategy.MEDOID: select_medoid,
}


def select_representative(
    strategy: SelectionStrategy,
    members: Sequence[TestCase],
    similarity: Optional[SimilarityFn] = None
) -> Representative:
    """Dispatch to the selection function for ``strategy``."""
    return _STRATEGIES[SelectionStrategy(strategy)](members, similarity)
