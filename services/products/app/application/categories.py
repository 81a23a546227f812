from sqlalchemy.orm import Session

from services.products.app.domain.models import Category
from shared.core.errors import ConflictError, NotFoundError, ValidationError, reject_nulls
from shared.core.logging_config import get_logger

from .schemas import CategoryCreate, CategoryUpdate

logger = get_logger(__name__)


class CategoryService:
    def __init__(self, db: Session):
        self.db = db

    def list(self, root_only: bool = False, is_active: bool = True):
        query = self.db.query(Category).filter(Category.is_active == is_active)
        if root_only:
            query = query.filter(Category.parent_id.is_(None))
        return query.order_by(Category.name).all()

    def get(self, category_id: int) -> Category:
        category = self.db.get(Category, category_id)
        if not category:
            raise NotFoundError("Category not found")
        return category

    def create(self, data: CategoryCreate) -> Category:
        self._check_name(data.name)
        if data.parent_id is not None and not self.db.get(Category, data.parent_id):
            raise ValidationError("Parent category not found")

        category = Category(**data.model_dump())
        self.db.add(category)
        self.db.commit()
        self.db.refresh(category)
        logger.info(f"Category created: {category.name}")
        return category

    def update(self, category_id: int, data: CategoryUpdate) -> Category:
        category = self.get(category_id)
        changes = data.model_dump(exclude_unset=True)
        reject_nulls(changes, ("name", "is_active"))
        if "name" in changes and changes["name"] != category.name:
            self._check_name(changes["name"])
        parent_id = changes.get("parent_id")
        if parent_id is not None:
            if parent_id == category_id:
                raise ValidationError("Category cannot be its own parent")
            if not self.db.get(Category, parent_id):
                raise ValidationError("Parent category not found")

        for field, value in changes.items():
            setattr(category, field, value)
        self.db.commit()
        self.db.refresh(category)
        return category

    def delete(self, category_id: int) -> None:
        category = self.get(category_id)
        category.is_active = False
        self.db.commit()

    def _check_name(self, name: str) -> None:
        if self.db.query(Category).filter(Category.name == name).first():
            raise ConflictError("Category with this name already exists")
