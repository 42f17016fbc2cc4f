#!/usr/bin/env python3
"""
Batch entry point for the background jobs, meant to be triggered by cron.

    finance-jobs recurring
    finance-jobs all --date 2025-01-31
"""
import argparse
import logging
import sys
from datetime import date

from backend.app.config import configure_logging
from backend.app.database import SessionLocal, create_tables
from backend.app.services.budget_scheduler import run_budget_alert_scheduler, run_expired_budget_sweep
from backend.app.services.recurring_scheduler import process_due_templates, run_upcoming_recurring_reminders

logger = logging.getLogger(__name__)

JOBS = {
    "recurring": process_due_templates,
    "reminders": run_upcoming_recurring_reminders,
    "expire-budgets": run_expired_budget_sweep,
    "budget-alerts": run_budget_alert_scheduler,
}

# Order used by "all": expire first so the alert sweep skips finished budgets
ALL_JOBS = ["recurring", "expire-budgets", "budget-alerts", "reminders"]

def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog="finance-jobs", description="Run finance tracker background jobs")
    parser.add_argument("job", choices=sorted(JOBS) + ["all"])
    parser.add_argument("--date", type=date.fromisoformat, default=None,
                        help="Run as if today were this date (YYYY-MM-DD)")
    return parser.parse_args(argv)

def run_jobs(db, job: str, today: date = None):
    """
    Run one job or all of them in order.

    A job that raises is rolled back, logged and recorded as
    {"error": message}; the remaining jobs still run.
    """
    names = ALL_JOBS if job == "all" else [job]
    results = {}
    for name in names:
        try:
            results[name] = JOBS[name](db, today)
        except Exception as exc:
            db.rollback()
            logger.exception("Job %s aborted", name)
            results[name] = {"error": str(exc)}
    return results

def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging()
    create_tables()

    db = SessionLocal()
    try:
        results = run_jobs(db, args.job, args.date)
    except Exception:
        logger.exception("Job %s aborted", args.job)
        return 1
    finally:
        db.close()

    for name, result in results.items():
        logger.info("%s: %s", name, result)

    dict_results = [r for r in results.values() if isinstance(r, dict)]
    if any("error" in r for r in dict_results):
        return 1
    # Entity-level failures are reported through a non-zero exit code
    failed = sum(r.get("failed", 0) for r in dict_results)
    return 2 if failed else 0

if __name__ == "__main__":
    sys.exit(main())
