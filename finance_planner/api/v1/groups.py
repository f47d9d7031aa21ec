"""Group and membership endpoints"""

import uuid
import logging
from fastapi import APIRouter, Depends, Request
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from finance_planner.api.v1.schemas import (
    GroupCreateRequest,
    GroupListResponse,
    GroupMutationResponse,
    MemberAddRequest,
    MemberAddResponse,
    MemberListResponse,
)
from finance_planner.api.dependencies import get_current_user, get_request_id
from finance_planner.domain.exceptions import DuplicateKeyError, NotFoundError, PermissionDeniedError
from finance_planner.infrastructure.database.models import User
from finance_planner.infrastructure.database.repositories import GroupRepository, UserRepository
from finance_planner.infrastructure.database.session import get_db

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=GroupListResponse)
def list_groups(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Groups the caller belongs to, with the caller's memberships"""
    groups, memberships = GroupRepository(db).list_for_user(current_user.id)
    return {"groups": groups, "memberships": memberships}


@router.post("", response_model=GroupMutationResponse, status_code=201)
def create_group(
    body: GroupCreateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    groups = GroupRepository(db)
    if groups.find_by_name(current_user.id, body.name) is not None:
        raise DuplicateKeyError("You already have a group with this name")

    try:
        group = groups.create(current_user.id, body.name)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateKeyError("You already have a group with this name") from e
    return {"message": "Group created successfully", "group": group}


@router.get("/{group_id}/members", response_model=MemberListResponse)
def list_members(
    group_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    groups = GroupRepository(db)
    groups.require_membership(group_id, current_user.id)
    return {"members": groups.members(group_id)}


@router.post("/{group_id}/members", response_model=MemberAddResponse, status_code=201)
def add_member(
    group_id: uuid.UUID,
    body: MemberAddRequest,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Add a user to the group by username.

    Errors:
    - 403: caller is a member but not the owner
    - 404: caller is not a member, or the username is unknown
    - 400: the user is already a member
    """
    groups = GroupRepository(db)
    membership = groups.require_membership(group_id, current_user.id)
    if membership.role != "owner":
        raise PermissionDeniedError("Only the group owner can add members")

    user = UserRepository(db).get_by_username(body.username)
    if user is None:
        raise NotFoundError("User not found")
    if groups.get_membership(group_id, user.id) is not None:
        raise DuplicateKeyError("User is already a member of this group")

    try:
        new_membership = groups.add_member(group_id, user.id, body.role)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateKeyError("User is already a member of this group") from e

    logger.info(
        "Group member added",
        extra={"request_id": get_request_id(request), "group_id": str(group_id), "user_id": str(user.id)},
    )
    return {"message": "Member added successfully", "membership": new_membership}
