from fastapi import APIRouter, Depends

from services.products.app.application.categories import CategoryService
from services.products.app.application.schemas import CategoryCreate, CategoryRead, CategoryUpdate
from shared.core.responses import list_response, success_response

from .dependencies import get_category_service

router = APIRouter(prefix="/api/categories", tags=["categories"])


def _read(category) -> dict:
    return CategoryRead.model_validate(category).model_dump()


@router.get("")
def list_categories(
    root_only: bool = False,
    is_active: bool = True,
    service: CategoryService = Depends(get_category_service),
):
    return list_response([_read(c) for c in service.list(root_only, is_active)])


@router.post("", status_code=201)
def create_category(payload: CategoryCreate, service: CategoryService = Depends(get_category_service)):
    return success_response(_read(service.create(payload)), message="Category created successfully")


@router.get("/{category_id}")
def get_category(category_id: int, service: CategoryService = Depends(get_category_service)):
    return success_response(_read(service.get(category_id)))


@router.put("/{category_id}")
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    service: CategoryService = Depends(get_category_service),
):
    return success_response(_read(service.update(category_id, payload)), message="Category updated successfully")


@router.delete("/{category_id}")
def delete_category(category_id: int, service: CategoryService = Depends(get_category_service)):
    service.delete(category_id)
    return success_response(message="Category deleted successfully")
