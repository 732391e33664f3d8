from enum import Enum


class UserRole(str, Enum):
    PERMIT_MANAGER = "permit_manager"
    ADMIN = "admin"
    SYSTEM = "system"
