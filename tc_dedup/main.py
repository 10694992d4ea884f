#!/usr/bin/env python3
"""
Command line entry point for duplicate test case analysis.

Reads test case records from a JSON file, runs the analysis and writes the
result as JSON or markdown.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from tc_dedup.config.ai_config import AIConfig
from tc_dedup.config.analysis_config import AnalysisMode, AnalysisOptions, ClusterLinkage
from tc_dedup.data.data_loader import load_test_cases_from_file
from tc_dedup.engine import DuplicateAnalysisEngine
from tc_dedup.errors import DuplicateAnalysisError
from tc_dedup.output.report_formatter import ReportFormatter


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tc-dedup",
        description="Duplicate Test Case Analysis - find clusters of redundant test cases"
    )
    parser.add_argument(
        "input",
        type=str,
        help="JSON file with a list of test case records (or an API page with 'items')"
    )
    parser.add_argument("--project-key", type=str, default="PROJECT", help="Project key (default: PROJECT)")
    parser.add_argument("--suite-id", type=str, default=None, help="Suite the test cases were taken from")
    parser.add_argument(
        "--similarity-threshold",
        type=float,
        default=80.0,
        help="Minimum test case similarity in percent, 50-100 (default: 80)"
    )
    parser.add_argument(
        "--step-clustering-threshold",
        type=float,
        default=85.0,
        help="Minimum step similarity in percent for step clusters, 50-100 (default: 85)"
    )
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in AnalysisMode],
        default=AnalysisMode.BASIC.value,
        help="Analysis mode (default: basic)"
    )
    parser.add_argument(
        "--linkage",
        choices=[linkage.value for linkage in ClusterLinkage],
        default=ClusterLinkage.SINGLE.value,
        help="Clustering policy (default: single)"
    )
    parser.add_argument(
        "--no-step-clustering",
        action="store_true",
        help="Group only steps with identical normalized text (semantic/hybrid modes)"
    )
    parser.add_argument(
        "--medoid",
        action="store_true",
        help="Pick each cluster's representative as its medoid instead of by heuristic"
    )
    parser.add_argument(
        "--no-semantic-patterns",
        action="store_true",
        help="Skip the LLM insights layer in semantic/hybrid modes"
    )
    parser.add_argument(
        "--use-llm",
        action="store_true",
        help="Use Claude for semantic insights (needs ANTHROPIC_API_KEY)"
    )
    parser.add_argument(
        "--max-test-cases",
        type=int,
        default=200,
        help="Reject inputs with more test cases than this (default: 200)"
    )
    parser.add_argument(
        "--format",
        choices=["json", "markdown"],
        default="json",
        help="Output format (default: json)"
    )
    parser.add_argument("--output", type=str, default=None, help="Write the result to this file instead of stdout")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv=None) -> int:
    """Main execution function."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s:%(message)s",
        stream=sys.stderr,
    )
    logger = logging.getLogger("tc_dedup")

    options = AnalysisOptions(
        similarity_threshold=args.similarity_threshold,
        step_clustering_threshold=args.step_clustering_threshold,
        analysis_mode=AnalysisMode(args.mode),
        use_step_clustering=not args.no_step_clustering,
        use_medoid_selection=args.medoid,
        include_semantic_patterns=not args.no_semantic_patterns,
        linkage=ClusterLinkage(args.linkage),
        max_test_cases=args.max_test_cases,
    )

    llm_hook = None
    if args.use_llm:
        try:
            from tc_dedup.ai.claude_client import ClaudeClient
            llm_hook = ClaudeClient(timeout=AIConfig.HOOK_TIMEOUT)
        except ValueError as e:
            logger.warning("  Warning: LLM insights unavailable: %s", e)

    try:
        test_cases = load_test_cases_from_file(args.input)
        engine = DuplicateAnalysisEngine(
            options,
            llm_hook=llm_hook,
            hook_timeout=AIConfig.HOOK_TIMEOUT,
            max_hook_calls=AIConfig.MAX_HOOK_CALLS,
        )
        result = engine.analyze(test_cases, args.project_key, args.suite_id)
    except DuplicateAnalysisError as e:
        logger.error("  Analysis failed: %s", e)
        return 2
    except (OSError, json.JSONDecodeError) as e:
        logger.error("  Could not read %s: %s", args.input, e)
        return 1

    if args.format == "markdown":
        text = ReportFormatter().format_duplicate_report(result)
    else:
        text = json.dumps(result, indent=2, ensure_ascii=False)

    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(text)
        logger.info("  Result written to %s", output_path)
    else:
        print(text)

    return 0


if __name__ == "__main__":
    sys.exit(main())
