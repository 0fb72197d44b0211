"""
Request identity supplied by the upstream gateway
"""
from typing import Optional
from uuid import UUID

from fastapi import Depends, Header, HTTPException
from pydantic import BaseModel

ROLES = ("student", "teacher", "admin")


class CurrentUser(BaseModel):
    """Authenticated caller; trusted as given"""
    id: UUID
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def get_current_user(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None)
) -> CurrentUser:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        user_id = UUID(x_user_id)
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid user id")

    role = (x_user_role or "").lower()
    if role not in ROLES:
        raise HTTPException(status_code=401, detail="Invalid user role")

    return CurrentUser(id=user_id, role=role)


def require_roles(*roles: str):
    """Dependency factory rejecting callers outside the given roles"""

    def checker(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role not in roles:
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return user

    return checker
