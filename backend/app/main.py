"""Command-line entry point.

Configures logging and metrics, runs one analysis and prints the
result as JSON on stdout. Fatal errors are printed in the DevIntel
error format on stderr.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Sequence

from app.config import get_settings
from app.exceptions import DevIntelError
from app.logging_config import get_logger, setup_logging
from app.metrics import APP_INFO

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="devintel",
        description="Derive developer metrics from public GitHub activity.",
    )
    parser.add_argument("username", help="GitHub login to analyze")
    parser.add_argument(
        "--year",
        type=int,
        default=None,
        help=(
            "Last year of the yearly breakdown. Defaults to DEVINTEL_REFERENCE_YEAR,"
            " else the current year (2026 is pinned to 2025)"
        ),
    )
    parser.add_argument("--compact", action="store_true", help="Print JSON without indentation")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()

    setup_logging()
    if settings.metrics_enabled:
        APP_INFO.info(
            {
                "version": settings.app_version,
                "environment": settings.environment.value,
            }
        )
    logger.info(
        "application_starting",
        version=settings.app_version,
        environment=settings.environment.value,
    )

    from services.analyzer import analyze_github_user

    try:
        result = asyncio.run(analyze_github_user(args.username, reference_year=args.year))
    except DevIntelError as e:
        logger.error("analysis_failed", code=e.code, status_code=e.status_code)
        print(json.dumps(e.to_dict()), file=sys.stderr)
        return 1

    print(result.model_dump_json(indent=None if args.compact else 2))
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
