# weeclass/core/security/jwt.py

import jwt
import uuid
from datetime import datetime, timedelta, timezone

from weeclass.core.errors import AuthError

ALGO = "HS256"


def sign_session_token(secret: str, subject: str, ttl: timedelta) -> tuple[str, str]:
    """Admin session token. Returns (token, jti) so the session can be revoked."""
    now = datetime.now(timezone.utc)
    jti = uuid.uuid4().hex
    payload = {
        "sub": subject,
        "role": "admin",
        "jti": jti,
        "iat": now,
        "exp": now + ttl,
        "type": "session",
    }
    return jwt.encode(payload, secret, algorithm=ALGO), jti


def sign_teacher_access_token(secret: str, ttl: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "role": "teacher",
        "iat": now,
        "exp": now + ttl,
        "type": "teacher_access",
    }
    return jwt.encode(payload, secret, algorithm=ALGO)


def verify_token(token: str, secret: str, expected_type: str) -> dict:
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGO])
    except jwt.PyJWTError as exc:
        raise AuthError("Invalid or expired token") from exc
    if payload.get("type") != expected_type:
        raise AuthError("Wrong token type")
    return payload
