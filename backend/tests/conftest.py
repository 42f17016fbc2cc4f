import os

# Point the application engine at the test database before it is imported
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient
from datetime import date
from uuid import uuid4

from backend.app.models.models import (
    Base, User, Transaction, Budget, RecurringTemplate, Notification, TransactionType
)
from backend.app.database import get_db_session
from backend.app.main import app

# Use a test database
TEST_DATABASE_URL = "sqlite:///./test.db"

@pytest.fixture(scope="session")
def db_engine():
    engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    yield engine
    # Teardown - drop all tables
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    if os.path.exists("./test.db"):
        os.remove("./test.db")

@pytest.fixture(scope="session")
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, autoflush=False)

@pytest.fixture(scope="function")
def db_session(session_factory):
    """Returns a fresh SQLAlchemy session for each test"""
    session = session_factory()

    # Clear out test data from previous run
    session.query(Notification).delete()
    session.query(Transaction).delete()
    session.query(RecurringTemplate).delete()
    session.query(Budget).delete()
    session.query(User).delete()
    session.commit()

    yield session
    session.close()

@pytest.fixture
def client(db_session):
    """Test client fixture that uses the db_session fixture"""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db_session] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()

@pytest.fixture
def test_user(db_session):
    """Creates a test user and returns it"""
    user = User(
        id=str(uuid4()),
        email="test@example.com",
        display_name="Test User"
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user

@pytest.fixture
def other_user(db_session):
    user = User(
        id=str(uuid4()),
        email="other@example.com",
        display_name="Other User"
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user

@pytest.fixture
def make_transaction(db_session):
    """Factory for transactions stored directly through the ORM"""
    def _make(user, amount, transaction_date, category_key="food",
              transaction_type=TransactionType.EXPENSE, description="Test transaction"):
        transaction = Transaction(
            user_id=user.id,
            category_key=category_key,
            transaction_type=transaction_type.value,
            amount=amount,
            description=description,
            transaction_date=transaction_date
        )
        db_session.add(transaction)
        db_session.commit()
        return transaction
    return _make

@pytest.fixture
def make_budget(db_session):
    """Factory for budgets stored directly through the ORM"""
    def _make(user, amount=500000.0, start_date=date(2025, 1, 1), end_date=date(2025, 1, 31),
              category_key="food", period_type="monthly", is_active=True):
        budget = Budget(
            user_id=user.id,
            category_key=category_key,
            amount=amount,
            period_type=period_type,
            start_date=start_date,
            end_date=end_date,
            is_active=is_active
        )
        db_session.add(budget)
        db_session.commit()
        db_session.refresh(budget)
        return budget
    return _make

@pytest.fixture
def make_template(db_session):
    """Factory for recurring templates stored directly through the ORM"""
    def _make(user, next_occurrence, frequency="monthly", interval=1, amount=1200.0,
              category_key="rent", transaction_type="expense", is_active=True, start_date=None,
              description="Monthly rent"):
        template = RecurringTemplate(
            user_id=user.id,
            category_key=category_key,
            transaction_type=transaction_type,
            amount=amount,
            description=description,
            start_date=start_date or next_occurrence,
            frequency=frequency,
            interval=interval,
            next_occurrence=next_occurrence,
            is_active=is_active
        )
        db_session.add(template)
        db_session.commit()
        db_session.refresh(template)
        return template
    return _make
