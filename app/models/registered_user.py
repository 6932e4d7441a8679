# app/models/registered_user.py

from sqlalchemy import String, Integer
from sqlalchemy.orm import Mapped, mapped_column
from fastapi_users_db_sqlalchemy import SQLAlchemyBaseUserTable
from infrastructure.database import Base


class RegisteredUser(Base, SQLAlchemyBaseUserTable[int]):
    """Registered User model with authentication details integrated with fastapi-users"""
    __tablename__ = "registered_users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    nickname: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    bio: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    # fastapi-users provides these fields automatically:
    # - email: str (unique, indexed)
    # - hashed_password: str
    # - is_active: bool (default True)
    # - is_superuser: bool (default False)
    # - is_verified: bool (default False)

    def __repr__(self):
        return f"<RegisteredUser(id={self.id}, nickname='{self.nickname}', email='{self.email}', is_active={self.is_active})>"
