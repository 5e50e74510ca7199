import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from schemas import Caller

JWT_SECRET = os.getenv("JWT_SECRET", "dev_secret_change_me")
JWT_ALG = os.getenv("JWT_ALG", "HS256")
TOKEN_EXPIRE_MIN = int(os.getenv("TOKEN_EXPIRE_MIN", 60 * 24 * 14))  # 14 days


def create_jwt(payload: Dict[str, Any]) -> str:
    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=TOKEN_EXPIRE_MIN)
    to_encode = {"exp": exp, "iat": now, **payload}
    return jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALG)


def decode_jwt(token: str) -> Dict[str, Any]:
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALG])
    except JWTError as e:
        raise HTTPException(status_code=401, detail=f"Invalid token: {str(e)}")


bearer_scheme = HTTPBearer(auto_error=False)


def get_caller(creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)) -> Optional[Caller]:
    """Identity from the bearer token, or None when no token was sent.
    Services decide how to treat anonymous callers."""
    if not creds:
        return None
    data = decode_jwt(creds.credentials)
    if not data.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid token: missing subject")
    return Caller(
        uid=data["sub"],
        email=data.get("email"),
        name=data.get("name"),
        account_type=data.get("account_type"),
    )
