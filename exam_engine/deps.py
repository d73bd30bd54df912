"""Shared FastAPI dependencies for database access and the caller's identity.

Authentication happens upstream; whatever identity provider fronts this
service stores ``user_id`` and ``role`` in the signed session cookie and the
values are trusted as-is.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request
from sqlmodel import Session

from exam_engine.database import get_session
from exam_engine.lifecycle import AttemptLifecycle

ROLES = ("admin", "student")


@dataclass(frozen=True)
class Principal:
    id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def get_current_principal(request: Request) -> Optional[Principal]:
    """Return the caller described by the session cookie, if any."""
    user_id = request.session.get("user_id")
    role = request.session.get("role")
    if user_id is None or role not in ROLES:
        return None
    try:
        return Principal(id=int(user_id), role=role)
    except (TypeError, ValueError):
        request.session.clear()
        return None


def require_login(current_user: Optional[Principal] = Depends(get_current_principal)) -> Principal:
    if current_user is None:
        raise HTTPException(status_code=401, detail="Authentication required.")
    return current_user


def require_role(required_roles: list[str]):
    """Dependency factory that enforces one of the given roles."""

    def wrapper(current_user: Principal = Depends(require_login)) -> Principal:
        if current_user.role not in required_roles:
            raise HTTPException(status_code=403, detail="You do not have permission for this resource.")
        return current_user

    return wrapper


def get_lifecycle(session: Session = Depends(get_session)) -> AttemptLifecycle:
    return AttemptLifecycle(session)
