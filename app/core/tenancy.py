"""
Tenant context resolution.

A TenantContext is derived from the caller's role assignments and passed
explicitly to every data access call. It is never stored and never mutated.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, Field

ADMIN_ROLE = "admin"


class TenantContext(BaseModel):
    """
    The caller's organization scope.

    - company_id: tenant key stamped on and required for every tenant-scoped record
    - team_ids: every team the caller belongs to, in role order
    - is_admin: admins bypass company filtering on reads
    """
    company_id: Optional[str] = None
    team_ids: List[str] = Field(default_factory=list)
    user_id: Optional[str] = None
    is_admin: bool = False
    role: Optional[str] = None

    class Config:
        frozen = True

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def primary_team_id(self) -> Optional[str]:
        return self.team_ids[0] if self.team_ids else None

    def enrich(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Return a copy of ``data`` stamped with ownership and timestamps."""
        now = datetime.now(timezone.utc)
        return {
            **data,
            "company_id": self.company_id,
            "team_id": self.primary_team_id,
            "created_by": self.user_id,
            "created_at": now,
            "updated_at": now,
        }


def _role_attr(role: Any, name: str) -> Any:
    if isinstance(role, dict):
        return role.get(name)
    return getattr(role, name, None)


def resolve_tenant_context(profile: Optional[Any]) -> TenantContext:
    """
    Derive the tenant context from a user profile.

    The profile is anything with an ``id`` and a ``roles`` sequence whose
    entries expose ``company_id``, ``team_id`` and ``role`` (ORM rows or
    plain dicts). Returns an empty context for ``None``. Never raises: a
    missing company is a valid result that writers must check.
    """
    if profile is None:
        return TenantContext()

    if isinstance(profile, dict):
        user_id = profile.get("id")
        roles: Iterable[Any] = profile.get("roles") or []
    else:
        user_id = getattr(profile, "id", None)
        roles = getattr(profile, "roles", None) or []
    roles = list(roles)

    is_admin = any(_role_attr(r, "role") == ADMIN_ROLE for r in roles)
    company_role = next((r for r in roles if _role_attr(r, "company_id")), None)
    team_ids = [_role_attr(r, "team_id") for r in roles if _role_attr(r, "team_id")]

    return TenantContext(
        company_id=_role_attr(company_role, "company_id") if company_role is not None else None,
        team_ids=team_ids,
        user_id=str(user_id) if user_id is not None else None,
        is_admin=is_admin,
        role=_role_attr(company_role, "role") if company_role is not None else None,
    )
