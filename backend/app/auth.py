from typing import Optional

from fastapi import Depends, Header, Security, HTTPException, status
from fastapi.security import APIKeyHeader

from backend.app.schemas import Principal
from shared.config import settings

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def get_principal(
        api_key: Optional[str] = Security(api_key_header),
        user_id: Optional[str] = Header(None, alias="X-User-Id"),
        email: Optional[str] = Header(None, alias="X-User-Email"),
        role: Optional[str] = Header(None, alias="X-User-Role"),
) -> Optional[Principal]:
    """
    Principal forwarded by the upstream authentication gateway.

    The gateway has already verified the user; its headers are only trusted
    when it presents one of the configured API keys.
    """
    if not api_key or api_key not in settings.API_KEYS or not user_id:
        return None
    return Principal(id=user_id, email=email or "", role=role or "user")


async def require_admin(principal: Optional[Principal] = Depends(get_principal)) -> Principal:
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required"
        )
    if principal.role != settings.ADMIN_ROLE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return principal
