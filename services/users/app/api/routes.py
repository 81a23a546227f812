from typing import Optional

from fastapi import APIRouter, Depends, Query

from services.users.app.application.schemas import UserCreate, UserRead, UserUpdate
from services.users.app.application.service import UserService
from services.users.app.domain.models import UserRole
from shared.core.responses import list_response, success_response

from .dependencies import get_user_service

router = APIRouter(prefix="/api/users", tags=["users"])


def _read(user) -> dict:
    return UserRead.model_validate(user).model_dump()


@router.get("")
def list_users(
    role: Optional[UserRole] = None,
    is_active: bool = True,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    service: UserService = Depends(get_user_service),
):
    return list_response([_read(u) for u in service.list(role, is_active, skip, limit)])


@router.post("", status_code=201)
def create_user(payload: UserCreate, service: UserService = Depends(get_user_service)):
    return success_response(_read(service.create(payload)), message="User created successfully")


@router.get("/{user_id}")
def get_user(user_id: int, service: UserService = Depends(get_user_service)):
    return success_response(_read(service.get(user_id)))


@router.put("/{user_id}")
def update_user(user_id: int, payload: UserUpdate, service: UserService = Depends(get_user_service)):
    return success_response(_read(service.update(user_id, payload)), message="User updated successfully")


@router.delete("/{user_id}")
def delete_user(user_id: int, service: UserService = Depends(get_user_service)):
    service.delete(user_id)
    return success_response(message="User deleted successfully")
