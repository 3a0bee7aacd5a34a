from typing import Annotated

from fastapi import Depends, Header, HTTPException
from pydantic import BaseModel

STUDENT_ROLE = "Student"
ADMIN_ROLE = "Admin"


class Identity(BaseModel):
    subject_id: str
    role: str


def get_identity(
    x_subject_id: Annotated[str | None, Header(alias="x-subject-id")] = None,
    x_role: Annotated[str | None, Header(alias="x-role")] = None,
) -> Identity:
    """
    Identity asserted by the fronting gateway after it verified the caller's token.
    Trusted verbatim; this service performs no authentication of its own.
    """
    if not x_subject_id or not x_role:
        raise HTTPException(status_code=401, detail="Unauthorized.")
    return Identity(subject_id=x_subject_id, role=x_role)


def require_student(identity: Annotated[Identity, Depends(get_identity)]) -> Identity:
    if identity.role != STUDENT_ROLE:
        raise HTTPException(status_code=403, detail="Students only.")
    return identity


def require_admin(identity: Annotated[Identity, Depends(get_identity)]) -> Identity:
    """Strict admin-only guard."""
    if identity.role != ADMIN_ROLE:
        raise HTTPException(status_code=403, detail="Admins only.")
    return identity
