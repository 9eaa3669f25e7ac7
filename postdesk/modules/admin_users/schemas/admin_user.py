from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict

class AdminUserBase(BaseModel):
    username: str
    full_name: Optional[str] = None
    email: Optional[str] = None

class AdminUserCreate(AdminUserBase):
    password: str

class AdminUser(AdminUserBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    is_active: bool = True
    created_at: Optional[datetime] = None

class AuthorOption(BaseModel):
    """Author entry for the post form and filter dropdowns"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    full_name: Optional[str] = None
