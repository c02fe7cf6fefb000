"""
Category endpoints
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from allone.core.database import get_db
from allone.core.security import require_admin
from allone.models.user import User
from allone.schemas.category import CategoryCreate, CategoryResponse, CategoryUpdate
from allone.schemas.common import dump, dump_list, success_response
from allone.services.categories import CategoryService

router = APIRouter()


@router.get("")
def list_categories(db: Session = Depends(get_db)):
    """Active categories sorted by name"""
    return success_response(dump_list(CategoryResponse, CategoryService.list_categories(db)))


@router.get("/{category_id}")
def get_category(category_id: int, db: Session = Depends(get_db)):
    return success_response(dump(CategoryResponse, CategoryService.get_category(db, category_id)))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_category(
    payload: CategoryCreate, admin: User = Depends(require_admin), db: Session = Depends(get_db)
):
    category = CategoryService.create_category(db, payload, admin)
    return success_response(dump(CategoryResponse, category), message="Category created successfully")


@router.put("/{category_id}")
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    category = CategoryService.update_category(db, category_id, payload, admin)
    return success_response(dump(CategoryResponse, category), message="Category updated successfully")


@router.delete("/{category_id}")
def delete_category(
    category_id: int, admin: User = Depends(require_admin), db: Session = Depends(get_db)
):
    CategoryService.delete_category(db, category_id, admin)
    return success_response(message="Category deleted successfully")
