from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from casinoapi.core.exceptions import AuthenticationError
from casinoapi.core.security import decode_access_token

# JWT Bearer scheme
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    """The current caller as seen by the ledger: an opaque id, nothing more."""

    user_id: str
    email: Optional[str] = None

    @property
    def export_name(self) -> str:
        """User identifier used in export filenames."""
        if self.email:
            return self.email.split("@")[0] or "user"
        return self.user_id


def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Identity:
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        payload = decode_access_token(credentials.credentials)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
    return Identity(user_id=payload.sub, email=payload.email)
