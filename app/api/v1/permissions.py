"""Read-only permission catalog endpoints (permissions and roles)."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.v1.auth import get_current_user
from app.core.database import get_db
from app.schemas.auth import Principal
from app.schemas.permissions import PermissionOut, RoleOut
from app.services.catalog import list_permissions, list_roles, role_permissions

router = APIRouter()


@router.get("/permissions", response_model=list[PermissionOut])
def get_permissions(
    _user: Annotated[Principal, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> list[PermissionOut]:
    """All known permissions, ordered by code."""
    return [PermissionOut.model_validate(p) for p in list_permissions(db)]


@router.get("/roles", response_model=list[RoleOut])
def get_roles(
    _user: Annotated[Principal, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> list[RoleOut]:
    """All roles with the permission codes each one grants."""
    return [
        RoleOut(
            id=r.id,
            code=r.code,
            name=r.name,
            description=r.description,
            permissions=sorted(role_permissions(db, r.code)),
        )
        for r in list_roles(db)
    ]
