"""Dependency injection for FastAPI endpoints"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from finance_planner.domain.exceptions import AuthError
from finance_planner.infrastructure.clients.openai_client import CategoryAIClient
from finance_planner.infrastructure.database.models import User
from finance_planner.infrastructure.database.repositories import UserRepository
from finance_planner.infrastructure.database.session import get_db
from finance_planner.infrastructure.security import decode_access_token
from finance_planner.services.ledger import LedgerService

bearer_scheme = HTTPBearer(auto_error=False)


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer token to a user; any failure is a 401"""
    if credentials is None or not credentials.credentials:
        raise AuthError("Access token required")

    user_id = decode_access_token(credentials.credentials)
    user = UserRepository(db).get_by_id(user_id)
    if user is None:
        raise AuthError("Invalid token")
    return user


def get_ledger_service(request: Request, db: Session = Depends(get_db)) -> LedgerService:
    """Provide a ledger service bound to the request's session"""
    return LedgerService(db, get_request_id(request))


def get_category_client() -> CategoryAIClient:
    """Provide category suggestion client instance"""
    return CategoryAIClient()
