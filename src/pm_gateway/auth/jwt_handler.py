"""JWT token creation and verification.

The token subject is the caller identity used throughout the ledger
(bettor, market creator, admin). Admin rights are not encoded in the token:
the registry compares the subject with GlobalConfig.admin on every admin
operation.

MVP NOTE: HS256 with a shared JWT_SECRET and no revocation list.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.pm_common.errors import InvalidCredentialsError

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"
_ACCESS_EXPIRE = timedelta(minutes=settings.JWT_EXPIRE_MINUTES)


def create_access_token(identity: str) -> str:
    """Issue a short-lived access token (default: 30 min)."""
    now = datetime.now(UTC)
    payload = {
        "sub": identity,
        "type": "access",
        "iat": now,
        "exp": now + _ACCESS_EXPIRE,
    }
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def decode_token(token: str) -> str:
    """Decode an access token and return its subject identity.

    Raises:
        InvalidCredentialsError: Token invalid, expired, of the wrong type
                                 or without a subject.
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        raise InvalidCredentialsError() from None

    if payload.get("type") != "access":
        raise InvalidCredentialsError()
    identity = payload.get("sub")
    if not identity:
        raise InvalidCredentialsError()
    return str(identity)
