from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from backend.app.schemas.users import UserCreate, UserResponse, UserUpdate, UserDeleteResponse
from backend.app.services.user_service import create_user, get_user_by_id, get_all_users, update_user, delete_user
from backend.app.database import get_db_session

router = APIRouter()

@router.post("/", response_model=UserResponse)
async def create_user_route(user_data: UserCreate, db: Session = Depends(get_db_session)):
    """
    Create a new user account.

    - Returns 400 if the email is already registered
    """
    return create_user(db, user_data)

@router.get("/", response_model=List[UserResponse])
async def get_users_route(db: Session = Depends(get_db_session)):
    return get_all_users(db)

@router.get("/{user_id}", response_model=UserResponse)
async def get_user_route(user_id: str, db: Session = Depends(get_db_session)):
    return get_user_by_id(db, user_id)

@router.patch("/{user_id}", response_model=UserResponse)
async def update_user_route(user_id: str, user_data: UserUpdate, db: Session = Depends(get_db_session)):
    return update_user(db, user_id, user_data)

@router.delete("/{user_id}", response_model=UserDeleteResponse)
async def delete_user_route(user_id: str, db: Session = Depends(get_db_session)):
    """
    Delete a user account.

    - Removes the user's budgets, recurring templates, transactions and notifications
    """
    return delete_user(db, user_id)
