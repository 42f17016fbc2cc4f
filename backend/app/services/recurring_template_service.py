from datetime import date, datetime
from typing import List, Dict, Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy.orm import Session
from fastapi import HTTPException

from backend.app.database import supports_row_locks
from backend.app.models.models import RecurringTemplate, Frequency, TransactionType, User
from backend.app.schemas.recurring_templates import RecurringTemplateCreate, RecurringTemplateUpdate

def compute_next_occurrence(current: date, frequency: str, interval: int) -> date:
    """
    Step `current` forward by `interval` units of `frequency`.

    Month and year steps clamp to the end of shorter months
    (2025-01-31 + 1 month -> 2025-02-28).
    """
    frequency = Frequency(frequency)
    if interval < 1:
        raise ValueError(f"interval must be >= 1, got {interval}")

    if frequency == Frequency.DAILY:
        return current + relativedelta(days=interval)
    if frequency == Frequency.WEEKLY:
        return current + relativedelta(weeks=interval)
    if frequency == Frequency.MONTHLY:
        return current + relativedelta(months=interval)
    return current + relativedelta(years=interval)

def create_template(db: Session, template: RecurringTemplateCreate) -> RecurringTemplate:
    """Create a recurring template; the first occurrence is its start date"""
    user = db.query(User).filter(User.id == template.user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail=f"User with id {template.user_id} not found")

    db_template = RecurringTemplate(
        user_id=template.user_id,
        category_key=template.category_key,
        transaction_type=TransactionType(template.transaction_type).value,
        amount=template.amount,
        description=template.description,
        merchant=template.merchant,
        start_date=template.start_date,
        frequency=Frequency(template.frequency).value,
        interval=template.interval,
        next_occurrence=template.start_date,
        is_active=True
    )
    db.add(db_template)
    db.commit()
    db.refresh(db_template)
    return db_template

def get_templates(db: Session, user_id: str, include_inactive: bool = False) -> List[RecurringTemplate]:
    """Templates of a user, active ones only unless include_inactive"""
    query = db.query(RecurringTemplate).filter(RecurringTemplate.user_id == user_id)
    if not include_inactive:
        query = query.filter(RecurringTemplate.is_active.is_(True))
    return query.order_by(RecurringTemplate.next_occurrence).all()

def get_template(db: Session, template_id: str, user_id: str) -> RecurringTemplate:
    template = db.query(RecurringTemplate).filter(
        RecurringTemplate.id == template_id,
        RecurringTemplate.user_id == user_id
    ).first()
    if not template:
        raise HTTPException(status_code=404, detail=f"Recurring template with id {template_id} not found")
    return template

def update_template(db: Session, template_id: str, user_id: str,
                    update: RecurringTemplateUpdate) -> RecurringTemplate:
    """Partial update of a template"""
    template = get_template(db, template_id, user_id)

    for key, value in update.model_dump(exclude_unset=True).items():
        if key in ("transaction_type", "frequency") and value is not None:
            value = value.value
        setattr(template, key, value)

    # next_occurrence never falls before the start date
    if template.next_occurrence < template.start_date:
        template.next_occurrence = template.start_date

    db.commit()
    db.refresh(template)
    return template

def deactivate_template(db: Session, template_id: str, user_id: str) -> RecurringTemplate:
    """Soft delete: the scheduler ignores inactive templates"""
    template = get_template(db, template_id, user_id)
    template.is_active = False
    db.commit()
    db.refresh(template)
    return template

def delete_template(db: Session, template_id: str, user_id: str) -> Dict[str, bool]:
    template = get_template(db, template_id, user_id)
    db.delete(template)
    db.commit()
    return {"success": True}

def find_due_templates(db: Session, today: date) -> List[RecurringTemplate]:
    """Active templates of every user whose next occurrence has arrived"""
    return db.query(RecurringTemplate).filter(
        RecurringTemplate.is_active.is_(True),
        RecurringTemplate.next_occurrence <= today
    ).order_by(RecurringTemplate.next_occurrence, RecurringTemplate.id).all()

def claim_due_template(db: Session, template_id: str, today: date) -> Optional[RecurringTemplate]:
    """
    Re-read a template inside the current transaction if it is still due.

    On PostgreSQL the row stays locked until commit; a row held by another
    run is skipped instead of waited on.
    """
    query = db.query(RecurringTemplate).filter(
        RecurringTemplate.id == template_id,
        RecurringTemplate.is_active.is_(True),
        RecurringTemplate.next_occurrence <= today
    ).populate_existing()
    if supports_row_locks(db):
        query = query.with_for_update(skip_locked=True)
    return query.first()

def find_upcoming_templates(db: Session, start: date, end: date) -> List[RecurringTemplate]:
    """Active templates whose next occurrence falls within [start, end]"""
    return db.query(RecurringTemplate).filter(
        RecurringTemplate.is_active.is_(True),
        RecurringTemplate.next_occurrence >= start,
        RecurringTemplate.next_occurrence <= end
    ).order_by(RecurringTemplate.next_occurrence).all()

def advance_next_occurrence(db: Session, template_id: str, expected: date, next_occurrence: date) -> bool:
    """
    Move next_occurrence from `expected` to `next_occurrence` without committing.

    The update only matches while the row still holds `expected`, so a run
    that lost the race gets False and must not materialize the occurrence.
    """
    updated = db.query(RecurringTemplate).filter(
        RecurringTemplate.id == template_id,
        RecurringTemplate.next_occurrence == expected
    ).update(
        {
            RecurringTemplate.next_occurrence: next_occurrence,
            RecurringTemplate.updated_at: datetime.utcnow()
        },
        synchronize_session=False
    )
    return updated == 1
