from uuid import uuid4
from datetime import datetime
from enum import Enum

from sqlalchemy import (
    Column, String, Integer, DateTime, Float, Boolean, ForeignKey, Date, Text, Index
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

# --- ENUMS ---

class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"

class Frequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"

class PeriodType(str, Enum):
    MONTHLY = "monthly"
    WEEKLY = "weekly"
    DAILY = "daily"

class AlertType(str, Enum):
    EXCEEDED = "exceeded"
    WARNING = "warning"
    NEAR_END = "near_end"

class NotificationType(str, Enum):
    BUDGET_EXCEEDED = "budget_exceeded"
    RECURRING_UPCOMING = "recurring_upcoming"
    SYSTEM = "system"

# --- SQLALCHEMY MODELS ---

class User(Base):
    __tablename__ = "users"
    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    email = Column(String, unique=True, nullable=False)
    display_name = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    transactions = relationship("Transaction", back_populates="user", cascade="all, delete-orphan")
    budgets = relationship("Budget", back_populates="user", cascade="all, delete-orphan")
    recurring_templates = relationship("RecurringTemplate", back_populates="user", cascade="all, delete-orphan")
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")

class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    category_key = Column(String(50), nullable=False)
    transaction_type = Column(String(10), nullable=False)  # income / expense
    amount = Column(Float, nullable=False)
    description = Column(Text, nullable=True)
    merchant = Column(String(100), nullable=True)
    transaction_date = Column(Date, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="transactions")

    __table_args__ = (
        Index("idx_transactions_user_category_date", "user_id", "category_key", "transaction_date"),
    )

class Budget(Base):
    __tablename__ = "budgets"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    category_key = Column(String(50), nullable=False)
    amount = Column(Float, nullable=False)
    period_type = Column(String(10), nullable=False, default=PeriodType.MONTHLY.value)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="budgets")

    __table_args__ = (
        Index("idx_budgets_user_active", "user_id", "is_active"),
    )

class RecurringTemplate(Base):
    """Rule that periodically materializes a concrete transaction"""
    __tablename__ = "recurring_templates"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    category_key = Column(String(50), nullable=False)
    transaction_type = Column(String(10), nullable=False)
    amount = Column(Float, nullable=False)
    description = Column(Text, nullable=True)
    merchant = Column(String(100), nullable=True)
    start_date = Column(Date, nullable=False)
    frequency = Column(String(10), nullable=False)
    interval = Column(Integer, nullable=False, default=1)
    next_occurrence = Column(Date, nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="recurring_templates")

class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type = Column(String(32), nullable=False)
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    read_at = Column(DateTime, nullable=True)

    # Relationships
    user = relationship("User", back_populates="notifications")
