import logging
from datetime import date
from typing import List, Optional, Dict, Any

from sqlalchemy import func, case
from sqlalchemy.orm import Session
from fastapi import HTTPException

from backend.app.config import get_settings
from backend.app.models.models import Transaction, TransactionType, User
from backend.app.schemas.transactions import TransactionCreate, TransactionUpdate

logger = logging.getLogger(__name__)

def create_transaction(db: Session, transaction: TransactionCreate, commit: bool = True) -> Transaction:
    """
    Create a new transaction record.

    With commit=False the row is only flushed, so the caller can commit it
    together with other changes (the recurring scheduler does this).
    """
    user = db.query(User).filter(User.id == transaction.user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail=f"User with id {transaction.user_id} not found")

    db_transaction = Transaction(
        user_id=transaction.user_id,
        category_key=transaction.category_key,
        transaction_type=TransactionType(transaction.transaction_type).value,
        amount=transaction.amount,
        description=transaction.description,
        merchant=transaction.merchant,
        transaction_date=transaction.transaction_date
    )
    db.add(db_transaction)

    if commit:
        db.commit()
        db.refresh(db_transaction)
    else:
        db.flush()

    return db_transaction

def get_transaction(db: Session, transaction_id: str, user_id: str) -> Transaction:
    """Get a single transaction owned by the user"""
    transaction = db.query(Transaction).filter(
        Transaction.id == transaction_id,
        Transaction.user_id == user_id
    ).first()
    if not transaction:
        raise HTTPException(status_code=404, detail=f"Transaction with id {transaction_id} not found")
    return transaction

def get_user_transactions(db: Session, user_id: str,
                          start_date: Optional[date] = None,
                          end_date: Optional[date] = None,
                          category_key: Optional[str] = None,
                          transaction_type: Optional[TransactionType] = None,
                          limit: Optional[int] = None,
                          offset: int = 0) -> List[Transaction]:
    """Get transactions for a user with optional filtering"""
    limit = limit or get_settings().default_page_size
    query = db.query(Transaction).filter(Transaction.user_id == user_id)

    if start_date:
        query = query.filter(Transaction.transaction_date >= start_date)
    if end_date:
        query = query.filter(Transaction.transaction_date <= end_date)
    if category_key:
        query = query.filter(Transaction.category_key == category_key)
    if transaction_type:
        query = query.filter(Transaction.transaction_type == TransactionType(transaction_type).value)

    # Return with pagination, sorted by date
    return query.order_by(
        Transaction.transaction_date.desc(), Transaction.created_at.desc()
    ).offset(offset).limit(limit).all()

def update_transaction(db: Session, transaction_id: str, user_id: str, update: TransactionUpdate) -> Transaction:
    """Update an existing transaction"""
    transaction = get_transaction(db, transaction_id, user_id)

    for key, value in update.model_dump(exclude_unset=True).items():
        if key == "transaction_type" and value is not None:
            value = TransactionType(value).value
        setattr(transaction, key, value)

    db.commit()
    db.refresh(transaction)
    return transaction

def delete_transaction(db: Session, transaction_id: str, user_id: str) -> Dict[str, bool]:
    """Delete a transaction"""
    transaction = get_transaction(db, transaction_id, user_id)
    db.delete(transaction)
    db.commit()
    return {"success": True}

def get_category_spending(db: Session, user_id: str, category_key: Optional[str],
                          start_date: date, end_date: date) -> float:
    """
    Sum of expense amounts for a user within [start_date, end_date] inclusive.

    A category_key of None sums over all categories.
    """
    query = db.query(func.coalesce(func.sum(Transaction.amount), 0.0)).filter(
        Transaction.user_id == user_id,
        Transaction.transaction_type == TransactionType.EXPENSE.value,
        Transaction.transaction_date >= start_date,
        Transaction.transaction_date <= end_date
    )
    if category_key is not None:
        query = query.filter(Transaction.category_key == category_key)

    return float(query.scalar() or 0.0)

def get_statistics(db: Session, user_id: str,
                   start_date: Optional[date] = None,
                   end_date: Optional[date] = None) -> Dict[str, Any]:
    """Income/expense totals, count, average amount and the top expense category"""
    filters = [Transaction.user_id == user_id]
    if start_date:
        filters.append(Transaction.transaction_date >= start_date)
    if end_date:
        filters.append(Transaction.transaction_date <= end_date)

    is_income = Transaction.transaction_type == TransactionType.INCOME.value
    is_expense = Transaction.transaction_type == TransactionType.EXPENSE.value

    row = db.query(
        func.coalesce(func.sum(case((is_income, Transaction.amount), else_=0.0)), 0.0),
        func.coalesce(func.sum(case((is_expense, Transaction.amount), else_=0.0)), 0.0),
        func.count(Transaction.id),
        func.coalesce(func.avg(Transaction.amount), 0.0)
    ).filter(*filters).one()

    total_by_category = func.sum(Transaction.amount)
    top = db.query(Transaction.category_key, total_by_category).filter(
        *filters, is_expense
    ).group_by(Transaction.category_key).order_by(total_by_category.desc()).first()

    return {
        "total_income": float(row[0]),
        "total_expenses": float(row[1]),
        "transaction_count": int(row[2]),
        "avg_amount": float(row[3]),
        "top_category": top[0] if top else None,
        "top_category_amount": float(top[1]) if top else 0.0
    }
