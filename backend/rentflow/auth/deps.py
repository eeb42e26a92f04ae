"""FastAPI dependencies for authentication and authorization.

Dependencies:
  get_current_user   → decode JWT, load user from DB, return User
  require_role(...)  → restrict to specific roles

Tokens are issued out of band (`python -m rentflow.cli issue-token`);
login lives outside this service.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rentflow.auth.jwt import decode_token
from rentflow.database import get_db
from rentflow.models.user import User, UserRole

bearer_scheme = HTTPBearer(auto_error=False)


# ── Core user dependency ────────────────────────────────────

async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Decode the bearer JWT and load the active user it names."""
    payload = decode_token(credentials.credentials) if credentials else {}
    user_id: str | None = payload.get("sub")
    if not user_id or payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )
    return user


# ── Role-based access control ───────────────────────────────

def require_role(*roles: UserRole):
    """Dependency factory: restrict to one or more roles.

    Usage:
        @router.post("/drafts")
        async def create(user: User = Depends(require_role(UserRole.PROPERTY_MANAGER))):
            ...
    """
    async def _check(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires role: {', '.join(r.value for r in roles)}",
            )
        return user

    return _check
