from dataclasses import dataclass
from typing import Optional

from jose import jwt, JWTError
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from app.config import settings

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


@dataclass(frozen=True)
class Shopper:
    """Signed-in shopper as asserted by the identity provider's session token."""

    user_id: str
    session_id: str
    token: str
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def decode_access_token(token: str) -> Optional[dict]:
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm],
        )
        return payload
    except JWTError:
        return None


def get_current_shopper(token: str = Depends(oauth2_scheme)) -> Shopper:
    payload = decode_access_token(token)

    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = payload.get("sub") or payload.get("user_id")
    session_id = payload.get("sid")

    if user_id is None or session_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload"
        )

    return Shopper(
        user_id=str(user_id),
        session_id=str(session_id),
        token=token,
        role=payload.get("role", "user"),
    )
