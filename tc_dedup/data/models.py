"""
Data models for representing test cases and test steps.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class AutomationState(str, Enum):
    MANUAL = "manual"
    AUTOMATED = "automated"
    MIXED = "mixed"
    UNSPECIFIED = "unspecified"

    @classmethod
    def parse(cls, value: Any) -> "AutomationState":
        """
        Map a TCM automation state (string or {"name": ...} object) onto the enum.

        Args:
            value: Raw automation state

        Returns:
            Matching AutomationState, UNSPECIFIED when unrecognised
        """
        if isinstance(value, AutomationState):
            return value
        if isinstance(value, dict):
            value = value.get("name")
        if not value or not isinstance(value, str):
            return cls.UNSPECIFIED

        state = value.strip().lower()
        if "not automated" in state or "manual" in state:
            return cls.MANUAL
        if "mixed" in state or "partial" in state:
            return cls.MIXED
        if "automated" in state:
            return cls.AUTOMATED
        return cls.UNSPECIFIED

    @property
    def automation_rank(self) -> int:
        """Higher is more automated; used when choosing a representative."""
        return {
            AutomationState.AUTOMATED: 2,
            AutomationState.MIXED: 1,
        }.get(self, 0)


@dataclass(frozen=True)
class Step:
    """Represents a single action/expected-result step."""
    index: int
    action: str = ""
    expected_result: str = ""

    def is_empty(self) -> bool:
        return not (self.action or "").strip() and not (self.expected_result or "").strip()


@dataclass
class TestCase:
    """Represents a test case with its metadata and steps.

    ``steps`` is None when the source record carried no steps field at all
    (a malformed record); an empty list means the case simply has no steps.
    """
    __test__ = False  # not a pytest test class

    key: str
    title: str = ""
    id: Optional[int] = None
    automation_state: AutomationState = AutomationState.UNSPECIFIED
    steps: Optional[List[Step]] = field(default_factory=list)
    last_modified: Optional[datetime] = None
    raw_data: Optional[Dict[str, Any]] = None  # Store original JSON for reference

    def __post_init__(self):
        self.automation_state = AutomationState.parse(self.automation_state)

    @property
    def is_malformed(self) -> bool:
        return self.steps is None

    def usable_steps(self) -> List[Step]:
        """Steps ordered by index, without empty ones."""
        if not self.steps:
            return []
        return [step for step in sorted(self.steps, key=lambda s: s.index) if not step.is_empty()]

    def get_step_count(self) -> int:
        """Get the number of usable steps in this test case."""
        return len(self.usable_steps())


@dataclass
class StepCluster:
    """A group of similar steps found across all test cases in one run."""
    id: str
    representative_step_text: str
    member_step_refs: List[Tuple[str, int]] = field(default_factory=list)  # (case key, step index)
    frequency: int = 0  # distinct test cases touching the cluster

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "representativeStepText": self.representative_step_text,
            "memberStepRefs": [
                {"testCaseKey": key, "stepIndex": index} for key, index in self.member_step_refs
            ],
            "frequency": self.frequency,
        }


@dataclass
class SimilarityPair:
    """Similarity between two test cases, reported in percent."""
    case_key_a: str
    case_key_b: str
    similarity_percentage: float
    shared_steps: int = 0
    total_steps_1: int = 0
    total_steps_2: int = 0
    pattern_type: str = "other"
    shared_steps_summary: List[str] = field(default_factory=list)
    variation_details: Dict[str, List[str]] = field(default_factory=dict)
    structural_percentage: Optional[float] = None
    step_cluster_overlap: Optional[float] = None
    fingerprint_cosine: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "testCase1Key": self.case_key_a,
            "testCase2Key": self.case_key_b,
            "similarityPercentage": self.similarity_percentage,
            "sharedSteps": self.shared_steps,
            "totalSteps1": self.total_steps_1,
            "totalSteps2": self.total_steps_2,
            "patternType": self.pattern_type,
            "sharedStepsSummary": list(self.shared_steps_summary),
            "variationDetails": {k: list(v) for k, v in self.variation_details.items()},
        }
        if self.step_cluster_overlap is not None:
            result["structuralSimilarity"] = self.structural_percentage
            result["stepClusterOverlap"] = self.step_cluster_overlap
            result["fingerprintCosine"] = self.fingerprint_cosine
        return result


@dataclass
class TestCaseCluster:
    """A group of two or more likely-duplicate test cases."""
    __test__ = False

    cluster_id: str
    test_cases: List[TestCase]
    average_similarity: float
    automation_mix: Dict[str, int] = field(default_factory=dict)
    shared_logic_summary: str = ""
    pattern_type: str = "other"
    recommended_base: Dict[str, str] = field(default_factory=dict)
    merging_strategy: str = ""
    step_cluster_ids: List[str] = field(default_factory=list)

    @property
    def keys(self) -> List[str]:
        return [tc.key for tc in self.test_cases]

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "clusterId": self.cluster_id,
            "testCases": [
                {
                    "key": tc.key,
                    "id": tc.id,
                    "title": tc.title,
                    "automationState": tc.automation_state.value,
                    "stepCount": tc.get_step_count(),
                }
                for tc in self.test_cases
            ],
            "averageSimilarity": self.average_similarity,
            "automationMix": dict(self.automation_mix),
            "sharedLogicSummary": self.shared_logic_summary,
            "patternType": self.pattern_type,
            "recommendedBase": dict(self.recommended_base),
            "mergingStrategy": self.merging_strategy,
        }
        if self.step_cluster_ids:
            result["stepClusters"] = list(self.step_cluster_ids)
        return result
