from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from services.users.app.core_settings import Settings
from services.users.app.domain.models import User, UserRole
from shared.core.errors import ConflictError, NotFoundError, reject_nulls
from shared.core.logging_config import get_logger

from .passwords import hash_password
from .schemas import UserCreate, UserUpdate

logger = get_logger(__name__)


class UserService:
    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings

    def list(
        self,
        role: Optional[UserRole] = None,
        is_active: bool = True,
        skip: int = 0,
        limit: int = 100,
    ) -> List[User]:
        query = self.db.query(User).filter(User.is_active == is_active)
        if role is not None:
            query = query.filter(User.role == UserRole(role).value)
        return query.order_by(User.username).offset(skip).limit(limit).all()

    def get(self, user_id: int) -> User:
        user = self.db.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def create(self, data: UserCreate) -> User:
        self._check_unique(data.username, data.email)
        user = User(
            username=data.username,
            email=data.email,
            password_hash=hash_password(data.password, self.settings.BCRYPT_ROUNDS),
            full_name=data.full_name,
            role=UserRole(data.role).value,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"User created: {user.username} ({user.role})")
        return user

    def update(self, user_id: int, data: UserUpdate) -> User:
        user = self.get(user_id)
        changes = data.model_dump(exclude_unset=True)
        reject_nulls(changes, ("username", "email", "role", "is_active"))
        username = changes.get("username") if changes.get("username") != user.username else None
        email = changes.get("email") if changes.get("email") != user.email else None
        if username or email:
            self._check_unique(username, email, exclude_id=user_id)

        password = changes.pop("password", None)
        if password:
            user.password_hash = hash_password(password, self.settings.BCRYPT_ROUNDS)
        if changes.get("role") is not None:
            changes["role"] = UserRole(changes["role"]).value
        for field, value in changes.items():
            setattr(user, field, value)
        self.db.commit()
        self.db.refresh(user)
        return user

    def delete(self, user_id: int) -> None:
        user = self.get(user_id)
        user.is_active = False
        self.db.commit()
        logger.info(f"User {user.username} deactivated")

    def _check_unique(self, username: Optional[str], email: Optional[str], exclude_id: Optional[int] = None) -> None:
        clauses = []
        if username:
            clauses.append(User.username == username)
        if email:
            clauses.append(User.email == email)
        query = self.db.query(User.id).filter(or_(*clauses))
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        if query.first():
            raise ConflictError("User with this username or email already exists")
