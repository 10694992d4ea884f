"""
Optional LLM layer adding workflow and automation insights to a duplicate analysis.

The hook is any callable ``(prompt) -> text`` (a coroutine function works
too). It is called a bounded number of times per run, never per pair, and
every failure surfaces as SemanticHookFailure so the caller can fall back
to the deterministic insights.
"""

import asyncio
import inspect
import json
import logging
import re
import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Union

from tc_dedup.data.models import StepCluster, TestCaseCluster
from tc_dedup.errors import SemanticHookFailure

logger = logging.getLogger(__name__)

LLMHook = Callable[[str], Union[str, Awaitable[str]]]

COMMON_PATTERN_MIN_FREQUENCY = 3
COMMON_PATTERN_LIMIT = 10
PROMPT_STEP_CLUSTER_LIMIT = 15
PROMPT_CLUSTER_LIMIT = 10

_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)

INSIGHTS_PROMPT = """
Analyze these test step clusters and duplicate test case clusters and provide insights.

Step Clusters:
{step_clusters}

Test Case Clusters:
{test_case_clusters}

Please respond with JSON in this format:
{{
  "discoveredWorkflows": ["workflow pattern 1", "workflow pattern 2"],
  "automationOpportunities": ["opportunity 1", "opportunity 2"],
  "commonStepPatterns": ["pattern 1", "pattern 2"]
}}

Focus on identifying:
1. Common user workflows that appear across multiple test cases
2. Opportunities for test automation and parameterization
3. Recurring step patterns that could be optimized
"""


async def _await(awaitable: Awaitable[str]) -> str:
    return await awaitable


class SemanticAugmenter:
    """Generates semantic insights, optionally enriched by an LLM hook."""

    def __init__(
        self,
        hook: Optional[LLMHook] = None,
        timeout_seconds: float = 60.0,
        max_calls: int = 2
    ):
        """
        Initialize semantic augmenter.

        Args:
            hook: LLM capability ``(prompt) -> text``; None disables the LLM layer
            timeout_seconds: Maximum wait for one hook call
            max_calls: Maximum hook calls for this augmenter
        """
        self.hook = hook
        self.timeout_seconds = timeout_seconds
        self.max_calls = max_calls
        self.calls_made = 0
        self.last_worker: Optional[threading.Thread] = None

    def deterministic_insights(
        self,
        step_clusters: Sequence[StepCluster],
        clusters: Sequence[TestCaseCluster]
    ) -> Dict[str, List[str]]:
        """Insights derived from the clustering alone."""
        common = [
            step_cluster.representative_step_text
            for step_cluster in step_clusters
            if step_cluster.frequency >= COMMON_PATTERN_MIN_FREQUENCY
        ][:COMMON_PATTERN_LIMIT]

        opportunities = [
            f"Cluster {cluster.cluster_id}: {len(cluster.test_cases)} manual tests ready for automation"
            for cluster in clusters
            if cluster.automation_mix.get("manual", 0) > 1 and cluster.automation_mix.get("automated", 0) == 0
        ]

        return {
            "commonStepPatterns": common,
            "discoveredWorkflows": [],
            "automationOpportunities": opportunities,
        }

    def build_prompt(
        self,
        step_clusters: Sequence[StepCluster],
        clusters: Sequence[TestCaseCluster]
    ) -> str:
        step_lines = [
            f"- {sc.representative_step_text} (appears in {sc.frequency} test cases)"
            for sc in step_clusters[:PROMPT_STEP_CLUSTER_LIMIT]
        ] or ["- (none)"]
        cluster_lines = [
            f"- Cluster {c.cluster_id}: {len(c.test_cases)} test cases, "
            f"{c.average_similarity}% similarity, pattern {c.pattern_type}, "
            f"shared steps: {c.shared_logic_summary or 'n/a'}"
            for c in clusters[:PROMPT_CLUSTER_LIMIT]
        ] or ["- (none)"]
        return INSIGHTS_PROMPT.format(
            step_clusters="\n".join(step_lines),
            test_case_clusters="\n".join(cluster_lines),
        )

    def call_hook(self, prompt: str) -> str:
        """
        Call the hook with a timeout.

        Raises:
            SemanticHookFailure: if no hook is configured, the call budget is
                spent, or the hook raises, times out or returns a non-string
        """
        if self.hook is None:
            raise SemanticHookFailure("no LLM hook configured")
        if self.calls_made >= self.max_calls:
            raise SemanticHookFailure(f"LLM call budget of {self.max_calls} exhausted")
        self.calls_made += 1

        future: Future = Future()

        def run() -> None:
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(self._invoke(prompt))
            except BaseException as e:
                future.set_exception(e)

        # A hung hook is abandoned; daemon threads do not block interpreter exit
        worker = threading.Thread(target=run, name="llm-hook", daemon=True)
        self.last_worker = worker
        worker.start()
        try:
            result = future.result(timeout=self.timeout_seconds)
        except FutureTimeoutError:
            raise SemanticHookFailure(f"LLM hook timed out after {self.timeout_seconds:g}s") from None
        except Exception as e:
            raise SemanticHookFailure(f"LLM hook raised {type(e).__name__}: {e}") from e

        if not isinstance(result, str):
            raise SemanticHookFailure(f"LLM hook returned {type(result).__name__}, expected text")
        return result

    def _invoke(self, prompt: str) -> Any:
        result = self.hook(prompt)
        if inspect.isawaitable(result):
            result = asyncio.run(_await(result))
        return result

    @staticmethod
    def parse_response(text: str) -> Dict[str, List[str]]:
        """
        Parse the JSON insights returned by the LLM.

        Raises:
            SemanticHookFailure: if the text is not a JSON object
        """
        cleaned = _CODE_FENCE.sub("", text.strip())
        try:
            parsed = json.loads(cleaned)
        except json.JSONDecodeError as e:
            raise SemanticHookFailure(f"LLM response is not valid JSON: {e}") from e
        if not isinstance(parsed, dict):
            raise SemanticHookFailure("LLM response is not a JSON object")

        insights = {}
        for name in ("discoveredWorkflows", "automationOpportunities", "commonStepPatterns"):
            values = parsed.get(name)
            if isinstance(values, list):
                insights[name] = [str(v).strip() for v in values if str(v).strip()]
        return insights

    def augment(
        self,
        base_insights: Dict[str, List[str]],
        step_clusters: Sequence[StepCluster],
        clusters: Sequence[TestCaseCluster]
    ) -> Dict[str, List[str]]:
        """
        Enrich deterministic insights with one LLM call.

        Args:
            base_insights: Output of deterministic_insights()
            step_clusters: Step clusters of the run
            clusters: Test case clusters of the run

        Returns:
            Merged insights

        Raises:
            SemanticHookFailure: on any hook or parsing failure
        """
        logger.info("  [SEMANTIC AUGMENTER] Requesting LLM insights...")
        llm_insights = self.parse_response(self.call_hook(self.build_prompt(step_clusters, clusters)))

        opportunities = list(base_insights.get("automationOpportunities", []))
        for item in llm_insights.get("automationOpportunities", []):
            if item not in opportunities:
                opportunities.append(item)

        merged = {
            "commonStepPatterns": llm_insights.get("commonStepPatterns") or list(base_insights.get("commonStepPatterns", [])),
            "discoveredWorkflows": llm_insights.get("discoveredWorkflows", []),
            "automationOpportunities": opportunities,
        }
        logger.info(
            "  [SEMANTIC AUGMENTER] LLM added %d workflows",
            len(merged["discoveredWorkflows"])
        )
        return merged
