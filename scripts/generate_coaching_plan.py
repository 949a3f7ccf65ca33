from __future__ import annotations

import argparse
import json
import os
import sys
from datetime import date
from typing import List, Optional

SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.abspath(os.path.join(SCRIPT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


def load_env_file(env_path: str) -> None:
    if not os.path.exists(env_path):
        return
    with open(env_path, "r", encoding="utf-8") as env_file:
        for line in env_file:
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            os.environ.setdefault(key, value)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Print the auto coaching plan for a department, team, or member scope."
    )
    parser.add_argument("--department", action="append", default=[], help="Department filter (repeatable).")
    parser.add_argument("--team", action="append", default=[], help="Team id filter (repeatable).")
    parser.add_argument("--member", action="append", default=[], help="Profile id filter (repeatable).")
    parser.add_argument(
        "--date-range",
        default="This Week",
        help="Date range preset, e.g. 'This Week', 'Last Month', 'Custom' (default: This Week).",
    )
    parser.add_argument("--start", type=date.fromisoformat, default=None, help="Period start (YYYY-MM-DD).")
    parser.add_argument("--end", type=date.fromisoformat, default=None, help="Period end (YYYY-MM-DD).")
    parser.add_argument("--audience", default="", help="Label printed in the plan header.")
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the recommendation payload as JSON instead of plan text.",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Environment file path (default: .env).",
    )
    return parser.parse_args(argv)


def run(args: argparse.Namespace) -> str:
    from src.analytics.coaching import build_coaching_plan_text
    from src.api.dependencies import get_scorecard_service
    from src.core.logging import configure_logging
    from src.schemas.performance import PerformanceScope

    configure_logging(os.environ.get("LOG_LEVEL"))
    scope = PerformanceScope(
        departments=args.department,
        teams=args.team,
        members=args.member,
        date_range=args.date_range,
        period_start=args.start,
        period_end=args.end,
    )
    recommendation = get_scorecard_service().recommend_playbooks(scope)
    if args.json:
        return json.dumps(recommendation.model_dump(mode="json", by_alias=True), indent=2, sort_keys=True)
    audience = args.audience or _describe_scope(args)
    return build_coaching_plan_text(audience, recommendation.playbooks)


def _describe_scope(args: argparse.Namespace) -> str:
    parts = []
    for label, values in (
        ("Departments", args.department),
        ("Teams", args.team),
        ("Members", args.member),
    ):
        if values:
            parts.append(f"{label}: {', '.join(values)}")
    return "; ".join(parts) or "Team Snapshot"


def main() -> None:
    args = parse_args()
    load_env_file(args.env_file)
    print(run(args))


if __name__ == "__main__":
    main()
