"""FastAPI dependency: get_current_identity.

Usage in any protected router:
    from src.pm_gateway.auth.dependencies import get_current_identity

    @router.post("/protected")
    async def protected(caller: str = Depends(get_current_identity)):
        ...
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from src.pm_common.errors import InvalidCredentialsError
from src.pm_gateway.auth.jwt_handler import decode_token

# tokenUrl tells Swagger UI where to get a token (used for the "Authorize" button)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/dev-token")

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_identity(token: str = Depends(oauth2_scheme)) -> str:
    """Extract and validate the JWT Bearer token, return the caller identity.

    Raises HTTP 401 if the token is missing, invalid, or expired.
    """
    try:
        return decode_token(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None
