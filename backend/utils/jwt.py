from jose import jwt, JWTError
from fastapi import HTTPException, status

from config.env import JWT_SECRET, JWT_ALGORITHM

def _require_jwt_secret() -> str:
    secret = (JWT_SECRET or "").strip()
    if not secret:
        raise RuntimeError("JWT_SECRET is not configured")
    return secret

def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, _require_jwt_secret(), algorithms=[JWT_ALGORITHM])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
