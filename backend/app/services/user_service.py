import logging

from sqlalchemy.orm import Session
from fastapi import HTTPException

from backend.app.models.models import User, RecurringTemplate
from backend.app.schemas.users import UserCreate, UserUpdate
from backend.app.services.budget_service import delete_all_by_user

logger = logging.getLogger(__name__)

def create_user(db: Session, user_data: UserCreate):
    """Service function to create a new user"""
    # Check if user with this email already exists
    existing_user = db.query(User).filter(User.email == user_data.email).first()
    if existing_user:
        raise HTTPException(status_code=400, detail="Email already registered")

    new_user = User(
        email=user_data.email,
        display_name=user_data.display_name
    )

    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    return new_user

def get_all_users(db: Session):
    """Service function to get all users"""
    return db.query(User).all()

def get_user_by_id(db: Session, user_id: str):
    """Service function to get a user by ID"""
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail=f"User with id {user_id} not found")
    return user

def get_user_by_email(db: Session, email: str):
    """Service function to get a user by email"""
    return db.query(User).filter(User.email == email).first()

def update_user(db: Session, user_id: str, user_data: UserUpdate):
    """Service function to update a user's information"""
    user = get_user_by_id(db, user_id)

    if user_data.display_name is not None:
        user.display_name = user_data.display_name

    db.commit()
    db.refresh(user)
    return user

def delete_user(db: Session, user_id: str):
    """
    Delete a user account together with its budgets and recurring templates.

    Transactions and notifications go through the ORM cascade on User.
    """
    user = get_user_by_id(db, user_id)

    budgets_deleted = delete_all_by_user(db, user_id, commit=False)
    templates_deleted = db.query(RecurringTemplate).filter(
        RecurringTemplate.user_id == user_id
    ).delete(synchronize_session="fetch")

    db.delete(user)
    db.commit()

    logger.info("Deleted user %s (%d budgets, %d recurring templates)", user_id, budgets_deleted, templates_deleted)
    return {"success": True, "budgets_deleted": budgets_deleted, "templates_deleted": templates_deleted}
