# smart_er/schemas/auth.py
from datetime import datetime

from pydantic import BaseModel

from smart_er.models.user import StaffRole


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    id: int
    username: str
    full_name: str
    role: StaffRole
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
