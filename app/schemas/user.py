from pydantic import BaseModel, EmailStr
from typing import Optional
from datetime import datetime
from decimal import Decimal

from app.models.user import UserRole


class UserBase(BaseModel):
    first_name: str
    last_name: Optional[str] = None
    email: EmailStr
    phone: Optional[str] = None


class UserCreate(UserBase):
    password: str


class UserInDB(UserBase):
    id: int
    role: UserRole = UserRole.STUDENT
    wallet_balance: Decimal = Decimal("0.00")
    created_at: datetime
    is_active: bool = True

    class Config:
        from_attributes = True


class UserResponse(UserInDB):
    pass
