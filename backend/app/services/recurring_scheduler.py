import logging
from datetime import date, timedelta
from typing import Dict, Any, Optional

from sqlalchemy.orm import Session

from backend.app.config import get_settings
from backend.app.models.models import Transaction
from backend.app.schemas.transactions import TransactionCreate
from backend.app.services.alert_service import notify_upcoming_recurring
from backend.app.services.recurring_template_service import (
    find_due_templates, find_upcoming_templates, claim_due_template,
    advance_next_occurrence, compute_next_occurrence
)
from backend.app.services.transaction_service import create_transaction

logger = logging.getLogger(__name__)

def materialize_template(db: Session, template_id: str, today: date) -> Optional[Transaction]:
    """
    Turn one due occurrence of a template into a transaction.

    The schedule advance and the transaction insert commit together. Returns
    None when the template is no longer due, which happens when another run
    already materialized this occurrence.
    """
    template = claim_due_template(db, template_id, today)
    if template is None:
        db.rollback()
        return None

    occurrence = template.next_occurrence
    # Cadence is kept by stepping from the scheduled date, not from today
    next_occurrence = compute_next_occurrence(occurrence, template.frequency, template.interval)

    if not advance_next_occurrence(db, template.id, occurrence, next_occurrence):
        db.rollback()
        return None

    transaction = create_transaction(db, TransactionCreate(
        user_id=template.user_id,
        category_key=template.category_key,
        transaction_type=template.transaction_type,
        amount=template.amount,
        description=template.description or "",
        merchant=template.merchant,
        transaction_date=occurrence
    ), commit=False)

    db.commit()
    logger.debug("Template %s materialized for %s, next occurrence %s", template_id, occurrence, next_occurrence)
    return transaction

def process_due_templates(db: Session, today: Optional[date] = None) -> Dict[str, Any]:
    """
    Materialize every due occurrence of every due recurring template.

    A template that fell behind is caught up in the same run, one committed
    occurrence at a time, so each back-dated transaction still goes through
    its own claim and compare-and-swap. A template whose processing fails is
    rolled back to its last committed occurrence and counted; the run
    carries on with the rest.

    `processed` counts created transactions, `skipped` counts templates that
    another run had already handled.
    """
    today = today or date.today()
    template_ids = [template.id for template in find_due_templates(db, today)]

    result = {"processed": 0, "skipped": 0, "failed": 0, "transaction_ids": []}
    for template_id in template_ids:
        created = 0
        try:
            while True:
                transaction = materialize_template(db, template_id, today)
                if transaction is None:
                    break
                created += 1
                result["processed"] += 1
                result["transaction_ids"].append(transaction.id)
        except Exception:
            db.rollback()
            result["failed"] += 1
            logger.exception("Failed to process recurring template %s after %d occurrence(s)", template_id, created)
            continue

        if created == 0:
            result["skipped"] += 1
        elif created > 1:
            logger.info("Recurring template %s caught up %d occurrences", template_id, created)

    logger.info(
        "Recurring run for %s: %d due, %d processed, %d skipped, %d failed",
        today, len(template_ids), result["processed"], result["skipped"], result["failed"]
    )
    return result

def run_upcoming_recurring_reminders(db: Session, today: Optional[date] = None) -> Dict[str, int]:
    """Notify owners of templates coming due within the reminder lead time"""
    today = today or date.today()
    lead_days = get_settings().recurring_reminder_days
    templates = find_upcoming_templates(db, today + timedelta(days=1), today + timedelta(days=lead_days))

    result = {"notified": 0, "failed": 0}
    for template in templates:
        template_id = template.id
        try:
            notify_upcoming_recurring(
                db, template.user_id, template.description or template.category_key, template.next_occurrence
            )
            result["notified"] += 1
        except Exception:
            db.rollback()
            result["failed"] += 1
            logger.exception("Failed to send reminder for recurring template %s", template_id)

    logger.info("Recurring reminders for %s: %d sent, %d failed", today, result["notified"], result["failed"])
    return result
