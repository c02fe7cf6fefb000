"""
Category service for AllOne
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from allone.core.database import unique_write
from allone.core.exceptions import DuplicateException, NotFoundException
from allone.core.logging import get_audit_logger
from allone.models.category import Category
from allone.models.user import User
from allone.schemas.category import CategoryCreate, CategoryUpdate

logger = logging.getLogger(__name__)
audit_logger = get_audit_logger()


class CategoryService:
    """Category service"""

    @staticmethod
    def _name_taken(db: Session, name: str, exclude_id: Optional[int] = None) -> bool:
        query = db.query(Category).filter(Category.name_key == name.casefold())
        if exclude_id is not None:
            query = query.filter(Category.id != exclude_id)
        return db.query(query.exists()).scalar()

    @staticmethod
    def list_categories(db: Session) -> List[Category]:
        return (
            db.query(Category)
            .filter(Category.is_active.is_(True))
            .order_by(Category.name.asc())
            .all()
        )

    @staticmethod
    def get_category(db: Session, category_id: int) -> Category:
        category = db.get(Category, category_id)
        if category is None or not category.is_active:
            raise NotFoundException("Category")
        return category

    @staticmethod
    def create_category(db: Session, payload: CategoryCreate, admin: User) -> Category:
        if CategoryService._name_taken(db, payload.name):
            raise DuplicateException("Category already exists")

        category = Category(**payload.model_dump(), name_key=payload.name.casefold(), created_by=admin.id)
        db.add(category)
        with unique_write(db, "Category already exists"):
            db.commit()
        db.refresh(category)

        audit_logger.info("Category created", extra={"category_id": category.id, "admin_id": admin.id})
        return category

    @staticmethod
    def update_category(db: Session, category_id: int, payload: CategoryUpdate, admin: User) -> Category:
        category = db.get(Category, category_id)
        if category is None:
            raise NotFoundException("Category")

        data = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
        if "name" in data and CategoryService._name_taken(db, data["name"], exclude_id=category.id):
            raise DuplicateException("Category already exists")
        for field, value in data.items():
            setattr(category, field, value)
        if "name" in data:
            category.name_key = data["name"].casefold()
        with unique_write(db, "Category already exists"):
            db.commit()
        db.refresh(category)

        audit_logger.info("Category updated", extra={"category_id": category.id, "admin_id": admin.id})
        return category

    @staticmethod
    def delete_category(db: Session, category_id: int, admin: User) -> None:
        """Soft delete; the name stays reserved"""
        category = db.get(Category, category_id)
        if category is None:
            raise NotFoundException("Category")
        category.is_active = False
        db.commit()
        audit_logger.info("Category deleted", extra={"category_id": category_id, "admin_id": admin.id})
