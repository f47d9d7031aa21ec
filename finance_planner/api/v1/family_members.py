"""Family member endpoints"""

import uuid
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from finance_planner.api.v1.schemas import FamilyMemberRequest, FamilyMemberResponse, MessageResponse
from finance_planner.api.dependencies import get_current_user
from finance_planner.domain.exceptions import DuplicateKeyError
from finance_planner.infrastructure.database.models import User
from finance_planner.infrastructure.database.repositories import FamilyMemberRepository
from finance_planner.infrastructure.database.session import get_db

router = APIRouter()

DEFAULT_COLOR = "#3498db"
DUPLICATE_NAME = "A family member with this name already exists"


@router.get("", response_model=List[FamilyMemberResponse])
def list_family_members(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return FamilyMemberRepository(db).list_by_user(current_user.id)


@router.post("", response_model=FamilyMemberResponse, status_code=201)
def create_family_member(
    body: FamilyMemberRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    members = FamilyMemberRepository(db)
    if members.find_by_name(current_user.id, body.name) is not None:
        raise DuplicateKeyError(DUPLICATE_NAME)

    try:
        member = members.create(current_user.id, body.name, body.color or DEFAULT_COLOR)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateKeyError(DUPLICATE_NAME) from e
    return member


@router.put("/{member_id}", response_model=FamilyMemberResponse)
def update_family_member(
    member_id: uuid.UUID,
    body: FamilyMemberRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    members = FamilyMemberRepository(db)
    member = members.get_owned(member_id, current_user.id)

    existing = members.find_by_name(current_user.id, body.name)
    if existing is not None and existing.id != member.id:
        raise DuplicateKeyError(DUPLICATE_NAME)

    member.name = body.name
    if body.color:
        member.color = body.color
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateKeyError(DUPLICATE_NAME) from e
    return member


@router.delete("/{member_id}", response_model=MessageResponse)
def delete_family_member(
    member_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    members = FamilyMemberRepository(db)
    members.delete(members.get_owned(member_id, current_user.id))
    db.commit()
    return {"message": "Family member deleted successfully"}
