from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional, Dict
from datetime import date

from backend.app.schemas.transactions import (
    TransactionCreate, TransactionUpdate, TransactionResponse, TransactionStatistics
)
from backend.app.services.transaction_service import (
    create_transaction,
    get_transaction,
    get_user_transactions,
    update_transaction,
    delete_transaction,
    get_statistics
)
from backend.app.database import get_db_session
from backend.app.models.models import TransactionType

router = APIRouter()

@router.post("/", response_model=TransactionResponse, status_code=201)
async def create_new_transaction(
    transaction_data: TransactionCreate,
    db: Session = Depends(get_db_session)
):
    """
    Create a new income or expense transaction.
    """
    return create_transaction(db, transaction_data)

@router.get("/", response_model=List[TransactionResponse])
async def get_transactions(
    user_id: str = Query(..., description="ID of the user"),
    start_date: Optional[date] = Query(None, description="Filter transactions on or after this date"),
    end_date: Optional[date] = Query(None, description="Filter transactions on or before this date"),
    category_key: Optional[str] = Query(None, description="Filter by category key"),
    transaction_type: Optional[TransactionType] = Query(None, description="income or expense"),
    limit: Optional[int] = Query(None, ge=1, le=500, description="Maximum number of transactions to return (defaults to the configured page size)"),
    offset: int = Query(0, ge=0, description="Number of transactions to skip"),
    db: Session = Depends(get_db_session)
):
    """
    Get a user's transactions.

    - Optional date range, category and type filtering
    - Results are paginated and sorted by date (newest first)
    """
    return get_user_transactions(db, user_id, start_date, end_date, category_key, transaction_type, limit, offset)

@router.get("/statistics", response_model=TransactionStatistics)
async def get_transaction_statistics(
    user_id: str = Query(..., description="ID of the user"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db_session)
):
    return get_statistics(db, user_id, start_date, end_date)

@router.get("/{transaction_id}", response_model=TransactionResponse)
async def get_transaction_endpoint(
    transaction_id: str,
    user_id: str = Query(...),
    db: Session = Depends(get_db_session)
):
    return get_transaction(db, transaction_id, user_id)

@router.put("/{transaction_id}", response_model=TransactionResponse)
async def update_transaction_endpoint(
    transaction_id: str,
    update: TransactionUpdate,
    user_id: str = Query(...),
    db: Session = Depends(get_db_session)
):
    return update_transaction(db, transaction_id, user_id, update)

@router.delete("/{transaction_id}", response_model=Dict[str, bool])
async def delete_transaction_endpoint(
    transaction_id: str,
    user_id: str = Query(...),
    db: Session = Depends(get_db_session)
):
    return delete_transaction(db, transaction_id, user_id)
