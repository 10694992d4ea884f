"""
Per-run options for duplicate analysis.

Every threshold is an explicit value on AnalysisOptions; the engine never
reads process-wide settings.
"""

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Dict, Optional

from tc_dedup.errors import InvalidThresholdError


THRESHOLD_MIN = 50
THRESHOLD_MAX = 100


class AnalysisMode(str, Enum):
    BASIC = "basic"
    SEMANTIC = "semantic"
    HYBRID = "hybrid"


class ClusterLinkage(str, Enum):
    # single = connected components; complete = every member pair meets the threshold
    SINGLE = "single"
    COMPLETE = "complete"


# camelCase keys accepted from external callers
_CAMEL_CASE_KEYS = {
    "similarityThreshold": "similarity_threshold",
    "stepClusteringThreshold": "step_clustering_threshold",
    "analysisMode": "analysis_mode",
    "useStepClustering": "use_step_clustering",
    "useMedoidSelection": "use_medoid_selection",
    "includeSemanticPatterns": "include_semantic_patterns",
    "maxTestCases": "max_test_cases",
    "matrixReportingFloor": "matrix_reporting_floor",
    "linkage": "linkage",
}


@dataclass
class AnalysisOptions:
    """Options controlling one duplicate analysis run."""
    similarity_threshold: float = 80.0
    step_clustering_threshold: float = 85.0
    analysis_mode: AnalysisMode = AnalysisMode.BASIC
    use_step_clustering: bool = True
    use_medoid_selection: bool = False
    include_semantic_patterns: bool = True

    # Heuristic constants, tunable
    action_weight: float = 0.6
    expected_result_weight: float = 0.4
    step_match_floor: float = 0.6
    near_identical_ratio: float = 0.85
    hybrid_structural_weight: float = 0.5
    matrix_reporting_floor: float = 30.0
    shared_logic_top_n: int = 5
    linkage: ClusterLinkage = ClusterLinkage.SINGLE

    # Pairwise comparison is O(n^2); larger inputs are rejected
    max_test_cases: int = 200

    def __post_init__(self):
        self.analysis_mode = AnalysisMode(self.analysis_mode)
        self.linkage = ClusterLinkage(self.linkage)

    @property
    def is_semantic(self) -> bool:
        """True for modes that build step clusters and fingerprints."""
        return self.analysis_mode in (AnalysisMode.SEMANTIC, AnalysisMode.HYBRID)

    @property
    def wants_llm(self) -> bool:
        """True when the run expects the LLM augmentation layer."""
        return self.is_semantic and self.include_semantic_patterns

    def validate(self) -> "AnalysisOptions":
        """
        Validate thresholds and weights.

        Returns:
            self, so calls can be chained

        Raises:
            InvalidThresholdError: if a threshold is outside [50, 100]
        """
        for name in ("similarity_threshold", "step_clustering_threshold"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidThresholdError(name, value, THRESHOLD_MIN, THRESHOLD_MAX)
            if not THRESHOLD_MIN <= value <= THRESHOLD_MAX:
                raise InvalidThresholdError(name, value, THRESHOLD_MIN, THRESHOLD_MAX)

        if not 0 <= self.matrix_reporting_floor <= 100:
            raise InvalidThresholdError("matrix_reporting_floor", self.matrix_reporting_floor, 0, 100)
        for name in ("step_match_floor", "near_identical_ratio", "hybrid_structural_weight"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise InvalidThresholdError(name, value, 0, 1)
        if self.action_weight < 0 or self.expected_result_weight < 0 or \
                self.action_weight + self.expected_result_weight <= 0:
            raise ValueError("action_weight and expected_result_weight must be non-negative and not both zero")
        if self.max_test_cases < 2:
            raise ValueError("max_test_cases must be at least 2")
        return self

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]] = None) -> "AnalysisOptions":
        """
        Build options from a dictionary using snake_case or camelCase keys.

        Unknown keys are ignored.
        """
        data = data or {}
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            name = _CAMEL_CASE_KEYS.get(key, key)
            if name in known and value is not None:
                kwargs[name] = value
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Options as a JSON-serializable dictionary."""
        result = {}
        for f in fields(self):
            value = getattr(self, f.name)
            result[f.name] = value.value if isinstance(value, Enum) else value
        return result
