from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Dict, Optional

import jwt
from passlib.context import CryptContext

from course_platform.errors import (
    PasswordDigestError,
    TokenExpiredError,
    TokenMalformedError,
    ValidationError,
)
from course_platform.models import PASSWORD_MAX_LENGTH, PASSWORD_MIN_LENGTH
from course_platform.util.time import utcnow


_pwd = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
_JWT_ALG = "HS256"

TOKEN_EXPIRE_DAYS = 30


def check_password_policy(password: str | None) -> None:
    if not password:
        raise ValidationError(["Password is required."])
    if len(password) < PASSWORD_MIN_LENGTH or len(password) > PASSWORD_MAX_LENGTH:
        raise ValidationError(
            [f"Length of password must be between {PASSWORD_MIN_LENGTH} ~ {PASSWORD_MAX_LENGTH} characters."]
        )


def hash_password(password: str) -> str:
    """Salted, deliberately slow one-way hash. Enforces the length policy first."""
    check_password_policy(password)
    return _pwd.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Return whether `password` matches the stored digest.

    A mismatch returns False. A stored digest that cannot be parsed raises
    PasswordDigestError so data corruption is not reported as a wrong password.
    """
    if not password:
        return False
    if not password_hash:
        raise PasswordDigestError("password_digest_blank")
    try:
        return _pwd.verify(password, password_hash)
    except (ValueError, TypeError) as e:
        raise PasswordDigestError(f"password_digest_malformed: {e}") from e


def create_access_token(
    *,
    secret: str,
    user_id: int,
    expires_days: int = TOKEN_EXPIRE_DAYS,
    issued_at: Optional[datetime] = None,
) -> str:
    if not secret:
        raise ValueError("jwt_secret_blank")

    now = issued_at or utcnow()
    exp = now + timedelta(days=max(1, int(expires_days)))

    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=_JWT_ALG)


def decode_access_token(*, token: str, secret: str) -> Dict[str, Any]:
    """Verify signature + expiry and return the claims.

    Raises TokenExpiredError or TokenMalformedError.
    """
    if not secret:
        raise ValueError("jwt_secret_blank")
    if not token:
        raise TokenMalformedError()
    try:
        return jwt.decode(
            token,
            secret,
            algorithms=[_JWT_ALG],
            options={"require": ["exp", "iat", "sub"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise TokenExpiredError() from e
    except jwt.InvalidTokenError as e:
        raise TokenMalformedError() from e


def subject_id(claims: Dict[str, Any]) -> int:
    """Extract the numeric user id from verified claims."""
    try:
        return int(claims["sub"])
    except (KeyError, TypeError, ValueError) as e:
        raise TokenMalformedError() from e
