"""Admin token guard shared by all staff routers."""
from typing import Annotated

from fastapi import Header, HTTPException, status

from tribes_admin.core.config import settings


async def verify_admin_token(x_admin_token: Annotated[str, Header()]) -> str:
    """Verify the admin token from header."""
    if x_admin_token != settings.ADMIN_TOKEN:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin token",
        )
    return x_admin_token
