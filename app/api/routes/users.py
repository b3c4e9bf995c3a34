from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.api.dependencies import get_user_service
from app.core.rate_limit import enforce_rate_limit
from app.schemas.common import SuccessResponse, success
from app.schemas.user import DeletedUser, UserCreate, UserPublic, UserUpdate
from app.services.user_service import UserService

router = APIRouter(
    prefix="/users",
    tags=["Users"],
    dependencies=[Depends(enforce_rate_limit)],
)

UserServiceDep = Annotated[UserService, Depends(get_user_service)]


@router.get("", response_model=SuccessResponse[list[UserPublic]])
def list_users(service: UserServiceDep) -> SuccessResponse[list[UserPublic]]:
    """List all users, oldest first."""

    users = [UserPublic(**u) for u in service.list_users()]
    return success(users, "Users retrieved successfully")


@router.get("/{user_id}", response_model=SuccessResponse[UserPublic])
def get_user(user_id: str, service: UserServiceDep) -> SuccessResponse[UserPublic]:
    """Fetch a single user by id.

    Raises:
        NotFoundAppError: 404 when the user does not exist.
    """

    return success(UserPublic(**service.get_user(user_id)), "User retrieved successfully")


@router.post(
    "",
    response_model=SuccessResponse[UserPublic],
    status_code=status.HTTP_201_CREATED,
)
def create_user(payload: UserCreate, service: UserServiceDep) -> SuccessResponse[UserPublic]:
    """Create a user.

    Raises:
        ValidationAppError: 400 when the e-mail is already registered.
    """

    user = service.create_user(
        email=str(payload.email),
        name=payload.name,
        password=payload.password,
        role=payload.role,
    )
    return success(UserPublic(**user), "User created successfully")


@router.patch("/{user_id}", response_model=SuccessResponse[UserPublic])
@router.put("/{user_id}", response_model=SuccessResponse[UserPublic])
def update_user(
    user_id: str,
    payload: UserUpdate,
    service: UserServiceDep,
) -> SuccessResponse[UserPublic]:
    """Update name, e-mail or role. Omitted fields are left untouched."""

    changes = payload.model_dump(exclude_none=True)
    if "email" in changes:
        changes["email"] = str(changes["email"])
    user = service.update_user(user_id, changes)
    return success(UserPublic(**user), "User updated successfully")


@router.delete("/{user_id}", response_model=SuccessResponse[DeletedUser])
def delete_user(user_id: str, service: UserServiceDep) -> SuccessResponse[DeletedUser]:
    service.delete_user(user_id)
    return success(DeletedUser(id=user_id), "User deleted successfully")
