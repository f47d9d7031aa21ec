"""Pytest fixtures for testing"""

import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.pop("OPENAI_API_KEY", None)

import pytest
from typing import Callable, Dict, Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from finance_planner.api.main import create_app
from finance_planner.infrastructure.database.models import Base
from finance_planner.infrastructure.database.session import get_db


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def register(client: TestClient) -> Callable[..., Dict[str, str]]:
    """Register a user and return its Authorization header"""

    def _register(username: str = "alice", password: str = "secret123", name: str = "Alice") -> Dict[str, str]:
        response = client.post(
            "/api/auth/register",
            json={"name": name, "username": username, "password": password},
        )
        assert response.status_code == 201, response.text
        return {"Authorization": f"Bearer {response.json()['token']}"}

    return _register


@pytest.fixture
def auth_headers(register) -> Dict[str, str]:
    return register()


@pytest.fixture
def create_account(client: TestClient, auth_headers: Dict[str, str]) -> Callable[..., dict]:
    """Create an account owned by the default user (or the given headers)"""

    def _create(balance: str = "100.00", headers: Dict[str, str] | None = None, **fields) -> dict:
        body = {"name": "Checking", "type": "checking", "balance": balance, **fields}
        response = client.post("/api/accounts", json=body, headers=headers or auth_headers)
        assert response.status_code == 201, response.text
        return response.json()["account"]

    return _create


@pytest.fixture
def create_card(client: TestClient, auth_headers: Dict[str, str]) -> Callable[..., dict]:
    """Create a credit card owned by the default user (or the given headers)"""

    def _create(
        limit: str = "1000.00",
        current_balance: str = "0.00",
        headers: Dict[str, str] | None = None,
    ) -> dict:
        body = {
            "name": "Visa",
            "bank": "Nubank",
            "limit": limit,
            "currentBalance": current_balance,
            "closingDay": 5,
            "dueDay": 15,
        }
        response = client.post("/api/credit-cards", json=body, headers=headers or auth_headers)
        assert response.status_code == 201, response.text
        return response.json()["creditCard"]

    return _create


@pytest.fixture
def create_transaction(client: TestClient, auth_headers: Dict[str, str]) -> Callable[..., dict]:
    """Create a transaction and return its JSON"""

    def _create(headers: Dict[str, str] | None = None, **fields) -> dict:
        body = {
            "description": "Groceries",
            "amount": "30.00",
            "type": "expense",
            "category": "Alimentação",
            **fields,
        }
        response = client.post("/api/transactions", json=body, headers=headers or auth_headers)
        assert response.status_code == 201, response.text
        return response.json()["transaction"]

    return _create
