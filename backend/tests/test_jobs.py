import pytest
from datetime import date
from unittest.mock import patch, Mock

from backend.app import jobs
from backend.app.models.models import Budget, Transaction
from backend.app.jobs import parse_args, run_jobs, main


def test_parse_args():
    args = parse_args(["all", "--date", "2025-01-31"])
    assert args.job == "all"
    assert args.date == date(2025, 1, 31)

    assert parse_args(["recurring"]).date is None


def test_parse_args_rejects_unknown_job():
    with pytest.raises(SystemExit):
        parse_args(["cleanup"])


def test_run_all_jobs(db_session, test_user, make_template, make_budget, make_transaction):
    make_template(test_user, next_occurrence=date(2025, 1, 31))
    make_budget(test_user, start_date=date(2024, 12, 1), end_date=date(2024, 12, 31))
    make_budget(test_user, amount=100.0, start_date=date(2025, 1, 1), end_date=date(2025, 1, 31))
    make_transaction(test_user, 150.0, date(2025, 1, 10))

    results = run_jobs(db_session, "all", date(2025, 1, 31))

    assert list(results) == ["recurring", "expire-budgets", "budget-alerts", "reminders"]
    assert results["recurring"]["processed"] == 1
    assert results["expire-budgets"] == 1
    assert results["budget-alerts"] == {"users_checked": 1, "notifications_sent": 1, "failed": 0}
    assert db_session.query(Transaction).filter(Transaction.category_key == "rent").count() == 1
    assert db_session.query(Budget).filter(Budget.is_active.is_(True)).count() == 1


def test_run_single_job(db_session, test_user, make_budget):
    make_budget(test_user, start_date=date(2024, 12, 1), end_date=date(2024, 12, 31))

    assert run_jobs(db_session, "expire-budgets", date(2025, 1, 1)) == {"expire-budgets": 1}


def test_main_exit_codes(session_factory):
    with patch.object(jobs, "create_tables"), patch.object(jobs, "SessionLocal", session_factory):
        with patch.object(jobs, "run_jobs", return_value={"recurring": {"processed": 1, "failed": 0}}):
            assert main(["recurring"]) == 0
        with patch.object(jobs, "run_jobs", return_value={"recurring": {"processed": 0, "failed": 2}}):
            assert main(["recurring"]) == 2
        with patch.object(jobs, "run_jobs", return_value={"recurring": {"error": "boom"}, "expire-budgets": 0}):
            assert main(["all"]) == 1
        with patch.object(jobs, "run_jobs", side_effect=RuntimeError("database unavailable")):
            assert main(["recurring"]) == 1


def test_failing_job_does_not_stop_the_others(db_session, test_user, make_budget, caplog):
    make_budget(test_user, start_date=date(2024, 12, 1), end_date=date(2024, 12, 31))
    broken = Mock(side_effect=RuntimeError("template table missing"))

    with patch.dict(jobs.JOBS, {"recurring": broken}):
        results = run_jobs(db_session, "all", date(2025, 1, 31))

    assert results["recurring"] == {"error": "template table missing"}
    assert results["expire-budgets"] == 1
    assert results["budget-alerts"]["failed"] == 0
    assert results["reminders"] == {"notified": 0, "failed": 0}
    assert "Job recurring aborted" in caplog.text
