from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from services.suppliers.app.domain.models import Supplier
from shared.core.errors import ConflictError, NotFoundError, reject_nulls
from shared.core.logging_config import get_logger

from .schemas import SupplierCreate, SupplierUpdate

logger = get_logger(__name__)


class SupplierService:
    def __init__(self, db: Session):
        self.db = db

    def list(
        self,
        is_active: bool = True,
        country: Optional[str] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Supplier]:
        query = self.db.query(Supplier).filter(Supplier.is_active == is_active)
        if country:
            query = query.filter(func.lower(Supplier.country) == country.lower())
        if search:
            query = query.filter(Supplier.name.ilike(f"%{search}%"))
        return query.order_by(Supplier.name, Supplier.id).offset(skip).limit(limit).all()

    def get(self, supplier_id: int) -> Supplier:
        supplier = self.db.get(Supplier, supplier_id)
        if not supplier:
            raise NotFoundError("Supplier not found")
        return supplier

    def create(self, data: SupplierCreate) -> Supplier:
        self._check_email(data.email)
        supplier = Supplier(**data.model_dump())
        self.db.add(supplier)
        self.db.commit()
        self.db.refresh(supplier)
        logger.info(f"Supplier created: {supplier.name} ({supplier.id})")
        return supplier

    def update(self, supplier_id: int, data: SupplierUpdate) -> Supplier:
        supplier = self.get(supplier_id)
        changes = data.model_dump(exclude_unset=True)
        reject_nulls(changes, ("name", "email", "is_active"))
        if changes.get("email") and changes["email"] != supplier.email:
            self._check_email(changes["email"])
        for field, value in changes.items():
            setattr(supplier, field, value)
        self.db.commit()
        self.db.refresh(supplier)
        return supplier

    def delete(self, supplier_id: int) -> None:
        supplier = self.get(supplier_id)
        supplier.is_active = False
        self.db.commit()
        logger.info(f"Supplier {supplier_id} deactivated")

    def _check_email(self, email: str) -> None:
        if self.db.query(Supplier.id).filter(Supplier.email == email).first():
            raise ConflictError("Supplier with this email already exists")
