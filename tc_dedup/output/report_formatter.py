"""
Module for formatting human-readable duplicate analysis reports.
"""

from typing import Dict

TOP_PAIRS_LIMIT = 20


class ReportFormatter:
    """Formats analysis results in human-readable formats."""

    def format_duplicate_report(self, result: Dict) -> str:
        """
        Format a duplicate analysis result as markdown.

        Args:
            result: Result dictionary from the analysis engine

        Returns:
            Markdown formatted report
        """
        lines = []
        title = f"# Duplicate Test Case Analysis - {result.get('projectKey', '')}"
        if result.get("suiteId") is not None:
            title += f" (suite {result['suiteId']})"
        lines.append(title)
        lines.append("")

        savings = result.get("potentialSavings", {})
        lines.append("## Summary")
        lines.append("")
        lines.append(f"- **Analysis Mode**: {result.get('analysisMode', 'basic')}")
        lines.append(f"- **Test Cases Analyzed**: {result.get('totalTestCases', 0)}")
        lines.append(f"- **Clusters Found**: {result.get('clustersFound', 0)}")
        lines.append(f"- **Duplicate Test Cases**: {savings.get('duplicateTestCases', 0)}")
        lines.append(f"- **Estimated Time Reduction**: {savings.get('estimatedTimeReduction', 'n/a')}")
        if result.get("skippedTestCases"):
            lines.append(f"- **Skipped**: {len(result['skippedTestCases'])} test cases without usable steps")
        if result.get("semanticFallbackReason"):
            lines.append(f"- **LLM Insights Unavailable**: {result['semanticFallbackReason']}")
        lines.append("")

        for cluster in result.get("clusters", []):
            keys = ", ".join(tc["key"] for tc in cluster["testCases"])
            mix = cluster.get("automationMix", {})
            lines.append(f"## {cluster['clusterId']} ({cluster['averageSimilarity']:.1f}% similar)")
            lines.append("")
            lines.append(f"- **Test Cases**: {keys}")
            lines.append(f"- **Pattern**: {cluster.get('patternType', 'other')}")
            lines.append(
                f"- **Automation Mix**: {mix.get('automated', 0)} automated, "
                f"{mix.get('manual', 0)} manual, {mix.get('mixed', 0)} mixed"
            )
            base = cluster.get("recommendedBase", {})
            lines.append(f"- **Keep**: {base.get('testCaseKey')} - {base.get('reason')}")
            lines.append(f"- **Strategy**: {cluster.get('mergingStrategy')}")
            if cluster.get("sharedLogicSummary"):
                lines.append(f"- **Shared Steps**: {cluster['sharedLogicSummary']}")
            lines.append("")

        pairs = result.get("similarityMatrix", [])
        if pairs:
            lines.append("## Most Similar Pairs")
            lines.append("")
            lines.append("| Test Case 1 | Test Case 2 | Similarity | Shared Steps | Pattern |")
            lines.append("|-------------|-------------|------------|--------------|---------|")
            for pair in pairs[:TOP_PAIRS_LIMIT]:
                lines.append(
                    f"| {pair['testCase1Key']} | {pair['testCase2Key']} | "
                    f"{pair['similarityPercentage']:.1f}% | "
                    f"{pair['sharedSteps']}/{max(pair['totalSteps1'], pair['totalSteps2'])} | "
                    f"{pair['patternType']} |"
                )
            if len(pairs) > TOP_PAIRS_LIMIT:
                lines.append(f"... and {len(pairs) - TOP_PAIRS_LIMIT} more")
            lines.append("")

        insights = result.get("semanticInsights")
        if insights:
            lines.append("## Semantic Insights")
            lines.append("")
            for heading, name in (
                ("Common Step Patterns", "commonStepPatterns"),
                ("Discovered Workflows", "discoveredWorkflows"),
                ("Automation Opportunities", "automationOpportunities"),
            ):
                if insights.get(name):
                    lines.append(f"### {heading}")
                    lines.append("")
                    lines.extend(f"- {item}" for item in insights[name])
                    lines.append("")

        return "\n".join(lines)
