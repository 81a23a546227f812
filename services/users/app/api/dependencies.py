from fastapi import Depends
from sqlalchemy.orm import Session

from services.users.app.application.service import UserService
from services.users.app.core_settings import get_settings
from services.users.app.infrastructure.db import get_db


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(db, get_settings())
