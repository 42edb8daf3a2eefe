"""Domain Entities - Auth"""
from pydantic import BaseModel, Field
from uuid import UUID, uuid4
from typing import Optional

from domain.enums import UserRole, ADMIN_ROLES


class User(BaseModel):
    """User Entity"""
    user_id: UUID = Field(default_factory=uuid4)
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: UserRole = UserRole.FRONT_DESK_STAFF
    property_id: Optional[str] = None
    disabled: bool = False

    class Config:
        from_attributes = True

    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    def can_access_property(self, property_id: str) -> bool:
        """Admins see every property; other staff only their own"""
        return self.is_admin() or self.property_id == property_id


class UserInDB(User):
    """User with hashed password for DB storage"""
    hashed_password: str
