"""
FastAPI dependencies for identity and tenant scoping.

These dependencies turn a bearer token into the TenantContext that every
data access call receives explicitly.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy.orm import Session, selectinload

from app.core.database import get_db
from app.core.security import decode_token
from app.core.tenancy import TenantContext, resolve_tenant_context
from app.models.user import User

# HTTP Bearer token scheme (Authorization: Bearer <token>)
security = HTTPBearer()


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Extract and validate the current user from JWT token.

    Raises:
        HTTPException 401: If token is invalid or user not found
        HTTPException 403: If the account is inactive
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_token(credentials.credentials)
        user_id = payload.get("sub")
        if user_id is None:
            raise credentials_exception
    except JWTError:
        raise credentials_exception

    user = (
        db.query(User)
        .options(selectinload(User.roles))
        .filter(User.id == str(user_id))
        .first()
    )
    if user is None:
        raise credentials_exception

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive"
        )

    return user


def get_tenant_context(user: User = Depends(get_current_user)) -> TenantContext:
    """
    Resolve the caller's TenantContext from their role assignments.

    A context without company_id is returned as-is; tenant-enforced
    operations reject it with a "missing tenant" error.

    Usage:
        @router.get("/jobs")
        def list_jobs(context: TenantContext = Depends(get_tenant_context), db: Session = Depends(get_db)):
            jobs = ScopedCollection(db, Job, context).query()
    """
    return resolve_tenant_context(user)
