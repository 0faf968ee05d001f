from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from coachstudio.models.enums import UserRole


class UserRead(BaseModel):
    id: int
    name: str = Field(max_length=100)
    email: EmailStr
    role: UserRole
    created_at: datetime

    model_config = {"from_attributes": True}
