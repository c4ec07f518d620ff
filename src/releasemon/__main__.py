"""CLI entry-point: ``python -m releasemon run`` / ``python -m releasemon summary``."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from releasemon.errors import ReleaseMonitorError
from releasemon.pipeline import run_pipeline, run_weekly_summary, setup_logging
from releasemon.sources import load_messages

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="releasemon",
        description="Extract release info from chat messages and keep a release log.",
    )
    sub = parser.add_subparsers(dest="command")

    # ── run ────────────────────────────────────────────────────────────
    run_parser = sub.add_parser("run", help="Extract releases from unprocessed messages.")
    run_parser.add_argument(
        "--messages",
        type=Path,
        required=True,
        help="JSON array of messages exported by the message source.",
    )
    run_parser.add_argument("--state", type=Path, help="Dedup state file (default from env).")
    run_parser.add_argument("--output", type=Path, help="Release log JSON file (default from env).")
    run_parser.add_argument(
        "--require-prompt",
        action="store_true",
        default=None,
        help="Fail instead of using the built-in prompt when the registry has none.",
    )
    run_parser.add_argument("--trace", action="store_true", help="Log LLM generation events.")
    run_parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging.")

    # ── summary ───────────────────────────────────────────────────────
    summary_parser = sub.add_parser(
        "summary",
        help="Write a weekly summary of recent releases from the release log.",
    )
    summary_parser.add_argument("--releases", type=Path, help="Release log JSON file (default from env).")
    summary_parser.add_argument(
        "--output-dir",
        type=Path,
        help="Where to write weekly-summary-YYYY-MM-DD.md (default: current directory).",
    )
    summary_parser.add_argument("--days", type=int, default=7, help="Window size in days (default: 7).")
    summary_parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging.")

    args = parser.parse_args(argv)

    if args.command not in ("run", "summary"):
        parser.print_help()
        sys.exit(1)

    setup_logging(verbose=args.verbose)
    try:
        if args.command == "run":
            releases = run_pipeline(
                load_messages(args.messages),
                state_path=args.state,
                output_path=args.output,
                require_prompt=args.require_prompt,
                trace=args.trace,
            )
            print(f"Extracted {len(releases)} new release(s).")
        else:
            out_path = run_weekly_summary(
                releases_path=args.releases,
                output_dir=args.output_dir,
                days=args.days,
            )
            print(f"Weekly summary generated: {out_path}")
    except ReleaseMonitorError as exc:
        logger.error("Error: %s", exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
