"""
Bearer token issuance/verification and password hashing.

Tokens are stateless: the signature and the ``exp`` claim are the only
lifetime bound, there is no revocation list.
"""
import datetime
from typing import Any, Dict, Optional

import jwt
from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS_TOKEN_EXPIRE_MINUTES = 60
BEARER_PREFIX = "Bearer "


class TokenError(Exception):
    pass


class MissingTokenError(TokenError):
    """No ``Authorization: Bearer <token>`` header was sent."""


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("password_blank")
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return pwd_context.verify(password, password_hash)
    except (ValueError, TypeError):
        # unrecognized or corrupt hash
        return False


def issue_token(
    user_id: str,
    email: str,
    *,
    secret: str,
    algorithm: str = "HS256",
    expires_minutes: int = ACCESS_TOKEN_EXPIRE_MINUTES,
    now: Optional[datetime.datetime] = None,
) -> str:
    if not secret:
        raise ValueError("jwt_secret_blank")
    issued_at = now or datetime.datetime.now(datetime.timezone.utc)
    expire = issued_at + datetime.timedelta(minutes=expires_minutes)
    payload = {
        "userId": user_id,
        "email": email,
        "iat": int(issued_at.timestamp()),
        "exp": int(expire.timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=algorithm)


def verify_token(token: str, *, secret: str, algorithm: str = "HS256") -> Dict[str, Any]:
    """Return ``{"userId", "email"}`` or raise TokenError.

    Expired, tampered and malformed tokens all raise the same error.
    """
    if not token:
        raise TokenError("token_blank")
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            options={"require": ["exp", "iat"]},
        )
    except jwt.InvalidTokenError as exc:
        raise TokenError(str(exc)) from exc

    user_id = payload.get("userId")
    email = payload.get("email")
    if not user_id or not email:
        raise TokenError("token_missing_claims")
    return {"userId": str(user_id), "email": email}


def bearer_token(authorization: Optional[str]) -> str:
    """Token part of an ``Authorization`` header.

    The scheme must be exactly ``Bearer``; ``"Bearer "`` with nothing after
    it yields an empty token, which then fails verification.
    """
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise MissingTokenError("missing_token")
    return authorization[len(BEARER_PREFIX):]


def authenticate(authorization: Optional[str], *, secret: str, algorithm: str = "HS256") -> Dict[str, Any]:
    return verify_token(bearer_token(authorization), secret=secret, algorithm=algorithm)
