from datetime import datetime

from pydantic import BaseModel, EmailStr

from framebook.domain.roles import UserRole


class UserResponse(BaseModel):
    id: int
    email: EmailStr
    username: str
    role: UserRole
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class UserSummary(BaseModel):
    id: int
    username: str
    role: UserRole

    model_config = {"from_attributes": True}


class ProviderIdResponse(BaseModel):
    id: int
