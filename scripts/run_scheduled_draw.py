"""Conduct the scheduled live draw from cron.

Intended to run once a day. Before the configured draw date it exits
without doing anything; on or after it, it conducts the draw once (a second
run for the same date is rejected as a duplicate).

Usage:
  python scripts/run_scheduled_draw.py
  python scripts/run_scheduled_draw.py --renew   # also roll subscriptions forward

Options:
  --force   conduct even if the draw date has not been reached
  --renew   after a successful draw, copy subscription lines to next month
"""

from __future__ import annotations

import argparse
import logging
import pathlib
import sys

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from club_lottery import create_app  # noqa: E402
from club_lottery.db import session_scope  # noqa: E402
from club_lottery.errors import DuplicateDrawError, ProviderUnavailableError, ValidationError  # noqa: E402

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--force", action="store_true")
    parser.add_argument("--renew", action="store_true")
    args = parser.parse_args(argv)

    app = create_app()
    orchestrator = app.extensions["draw_orchestrator"]
    renewal = app.extensions["renewal_service"]

    with app.app_context(), session_scope(app) as session:
        try:
            outcome = orchestrator.conduct_scheduled(session, force=args.force)
        except ValidationError as exc:
            logger.info("Nothing to do: %s", exc.message)
            return 0
        except DuplicateDrawError as exc:
            logger.info("Skipped: %s", exc.message)
            return 0
        except ProviderUnavailableError as exc:
            logger.error("Draw aborted: %s %s", exc.message, exc.details or "")
            return 2

        result = outcome.to_dict()
        logger.info(
            "Draw %s conducted: numbers=%s jackpot_winners=%d lucky_dip_winners=%d",
            result["drawDate"],
            result["winningNumbers"],
            result["jackpotWinners"],
            result["luckyDipWinners"],
        )

        if args.renew:
            summary = renewal.renew(session, outcome.draw.draw_date)
            logger.info("Created %d entries for %s", summary.new_entries_created, summary.next_draw_date)

    return 0


if __name__ == "__main__":
    sys.exit(main())
