# app/schemas/user_schema.py

from fastapi_users import schemas
from typing import Optional
from pydantic import EmailStr, Field, ConfigDict, field_validator


class UserValidatorsMixin:
    """Mixin class with shared validators for user schemas"""

    @field_validator('nickname', check_fields=False)
    @classmethod
    def validate_nickname(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            v = v.strip()
            if not v:
                raise ValueError('Nickname cannot be empty or only whitespace')
        return v


class UserRead(schemas.BaseUser[int]):
    """Schema for reading user data"""
    nickname: str
    bio: Optional[str] = None


class UserCreate(UserValidatorsMixin, schemas.BaseUserCreate):
    """Schema for creating a new user - only requires email, password, and nickname"""
    email: EmailStr
    password: str = Field(..., min_length=8)
    nickname: str = Field(..., min_length=3, max_length=20)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "user@example.com",
                "password": "strongpassword123",
                "nickname": "striker_10"
            }
        }
    )


class UserUpdate(UserValidatorsMixin, schemas.BaseUserUpdate):
    """Schema for updating the current user's profile"""
    nickname: Optional[str] = Field(default=None, min_length=3, max_length=20)
    bio: Optional[str] = Field(default=None, max_length=1000)
