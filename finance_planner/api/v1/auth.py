"""Registration, login and profile endpoints"""

import logging
from fastapi import APIRouter, Depends, Request
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from finance_planner.api.v1.schemas import (
    AuthResponse,
    ChangePasswordRequest,
    LoginRequest,
    MessageResponse,
    ProfileUpdateRequest,
    RegisterRequest,
    UserResponse,
)
from finance_planner.api.dependencies import get_current_user, get_request_id
from finance_planner.domain.exceptions import AuthError, DuplicateKeyError
from finance_planner.infrastructure.database.models import User
from finance_planner.infrastructure.database.repositories import UserRepository
from finance_planner.infrastructure.database.session import get_db
from finance_planner.infrastructure.security import create_access_token, hash_password, verify_password

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(body: RegisterRequest, request: Request, db: Session = Depends(get_db)):
    """Create a user and return a bearer token for it"""
    users = UserRepository(db)
    if users.get_by_username(body.username) is not None:
        raise DuplicateKeyError("Username already taken")

    try:
        user = users.create(body.name, body.username, hash_password(body.password))
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateKeyError("Username already taken") from e

    logger.info("User registered", extra={"request_id": get_request_id(request), "user_id": str(user.id)})
    return {"message": "User created successfully", "token": create_access_token(user.id), "user": user}


@router.post("/login", response_model=AuthResponse)
def login(body: LoginRequest, request: Request, db: Session = Depends(get_db)):
    """
    Exchange username and password for a bearer token.

    Unknown users and wrong passwords get the same answer.
    """
    user = UserRepository(db).get_by_username(body.username)
    if user is None or not verify_password(body.password, user.password_hash):
        logger.info("Login rejected", extra={"request_id": get_request_id(request)})
        raise AuthError("Invalid credentials")

    return {"message": "Login successful", "token": create_access_token(user.id), "user": user}


@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("/profile", response_model=UserResponse)
def update_profile(
    body: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    changes = body.model_dump(exclude_unset=True, exclude_none=True)

    if "email" in changes:
        changes["email"] = changes["email"].lower()
        owner = UserRepository(db).get_by_email(changes["email"])
        if owner is not None and owner.id != current_user.id:
            raise DuplicateKeyError("Email already in use")

    for key, value in changes.items():
        setattr(current_user, key, value)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateKeyError("Email already in use") from e
    return current_user


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    body: ChangePasswordRequest,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Replace the caller's password after checking the current one"""
    if not verify_password(body.current_password, current_user.password_hash):
        raise AuthError("Current password is incorrect")

    current_user.password_hash = hash_password(body.new_password)
    db.commit()

    logger.info("Password changed", extra={"request_id": get_request_id(request), "user_id": str(current_user.id)})
    return {"message": "Password changed successfully"}
