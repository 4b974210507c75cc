from pydantic import EmailStr, Field
from typing import Optional

from app.models.user import RoleEnum
from app.schemas.common import CamelModel, Name, UtcDateTime


class UserCreate(CamelModel):
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    name: Name(150)
    phone: Optional[str] = Field(default=None, max_length=30)


class UserRead(CamelModel):
    # never add password_hash here
    id: str
    email: str
    name: str
    phone: Optional[str] = None
    role: RoleEnum
    created_at: Optional[UtcDateTime] = None
    updated_at: Optional[UtcDateTime] = None


class UserSummary(CamelModel):
    id: str
    name: str
    email: str


class LoginRequest(CamelModel):
    # plain str: a malformed e-mail must fail like any other bad credential
    email: str
    password: str


class ChangePasswordRequest(CamelModel):
    current_password: str
    new_password: str = Field(min_length=6, max_length=128)


class ForgotPasswordRequest(CamelModel):
    email: EmailStr


class ResetPasswordRequest(CamelModel):
    token: str
    password: str = Field(min_length=6, max_length=128)
