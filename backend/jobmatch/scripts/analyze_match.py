"""
Analyze how well a candidate profile matches one job posting.

Usage (from backend/):
  python -m jobmatch.scripts.analyze_match --profile profile.json --job job.json [--verbose] [--json]

Needs ANTHROPIC_API_KEY in the environment or .env. Exit codes: 0 ok,
1 usage or input error, 2 analysis failure.
"""
from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

from jobmatch.components.matching.errors import InvalidInputError, MatchAnalysisFailed
from jobmatch.components.matching.schemas import MatchAnalysis, recommendation_text
from jobmatch.components.matching.service import MatchAnalysisService
from jobmatch.platform.logging import setup_logging

EXIT_OK = 0
EXIT_INPUT_ERROR = 1
EXIT_ANALYSIS_FAILED = 2

_RULE = "=" * 70


def _load_json(path: str, label: str) -> Any:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise InvalidInputError(f"Could not read {label} file {path}: {exc.strerror or exc}") from exc
    except json.JSONDecodeError as exc:
        raise InvalidInputError(f"{label.capitalize()} file {path} is not valid JSON: {exc.msg}") from exc


def format_report(analysis: MatchAnalysis, job: dict, verbose: bool = False) -> str:
    score = analysis.score
    lines = [
        _RULE,
        "JOB ANALYSIS RESULTS",
        _RULE,
        f"Title:       {job.get('title', '')}",
        f"Company:     {job.get('company') or 'not specified'}",
        f"Location:    {job.get('location') or 'not specified'}",
        f"Remote Type: {job.get('remote_type') or 'office'}",
        "",
        f"Overall Match Score: {score.overall_score}%",
        f"Recommendation: {recommendation_text(score.recommendation)}",
        "",
        "Score Breakdown:",
        f"  Skills Match:       {score.skills_match}%",
        f"  Experience Match:   {score.experience_match}%",
        f"  Location Match:     {score.location_match}%",
        f"  Company Match:      {score.company_match}%",
        f"  Requirements Match: {score.requirements_match}%",
    ]
    if score.matching_skills:
        lines += ["", "Matching Skills:"] + [f"  + {skill}" for skill in score.matching_skills]
    if score.missing_skills:
        lines += ["", "Missing Skills:"] + [f"  - {skill}" for skill in score.missing_skills]
    if verbose and score.details:
        lines += ["", "Detailed Analysis:", score.details]
    if analysis.cached:
        lines += ["", "(served from cache)"]
    lines += [
        "",
        f"API Cost: ${analysis.usage.cost_usd:.4f} USD",
        f"  Input tokens: {analysis.usage.input_tokens:,}",
        f"  Output tokens: {analysis.usage.output_tokens:,}",
        _RULE,
    ]
    return "\n".join(lines)


def main(argv: Optional[Sequence[str]] = None, service: Optional[MatchAnalysisService] = None) -> int:
    parser = argparse.ArgumentParser(description="Score a candidate profile against a job posting with Claude")
    parser.add_argument("--profile", required=True, help="Path to the profile JSON file")
    parser.add_argument("--job", required=True, help="Path to the job JSON file")
    parser.add_argument("--verbose", action="store_true", help="Include Claude's detailed analysis")
    parser.add_argument("--json", action="store_true", dest="as_json", help="Print the raw result as JSON")
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        return EXIT_OK if exc.code == 0 else EXIT_INPUT_ERROR

    setup_logging(level="DEBUG" if args.verbose else "WARNING", fmt="text")

    try:
        profile = _load_json(args.profile, "profile")
        job = _load_json(args.job, "job")
        if service is None:
            service = MatchAnalysisService()
        analysis = asyncio.run(service.analyze_match(profile, job))
    except (InvalidInputError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_INPUT_ERROR
    except MatchAnalysisFailed as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_ANALYSIS_FAILED

    if args.as_json:
        print(json.dumps(analysis.model_dump(mode="json"), indent=2))
    else:
        print(format_report(analysis, job if isinstance(job, dict) else {}, verbose=args.verbose))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
