from enum import Enum

from pydantic import BaseModel


class UserRole(str, Enum):
    """Personnel tier"""

    ADMIN = "admin"
    CORE_EMPLOYEE = "core_employee"
    NORMAL_EMPLOYEE = "normal_employee"
    INTERN = "intern"
    GUEST = "guest"


class Actor(BaseModel):
    """Authenticated principal"""

    id: str
    role: UserRole = UserRole.GUEST
    name: str | None = None

    @property
    def display_name(self) -> str:
        return self.name or self.id
