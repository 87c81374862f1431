"""
JWT verification for identifying the customer behind a request.

Sign-in happens elsewhere; this service only needs to trust a bearer token
and read the numeric user id from its subject claim. Token creation is kept
for tooling and tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from flowershop.core.config import get_settings
from flowershop.core.logging import get_logger

settings = get_settings()
logger = get_logger(__name__)


class SecurityError(Exception):
    """Base exception for security-related errors."""

    def __init__(self, message: str, code: str, **context):
        super().__init__(message)
        self.code = code
        self.context = context


class TokenError(SecurityError):
    """Exception raised for token-related errors."""

    pass


def create_access_token(
    user_id: int,
    expires_delta: Optional[timedelta] = None,
    **claims: Any,
) -> str:
    """
    Create a signed access token for a user.

    Args:
        user_id: Numeric user identifier stored in the ``sub`` claim
        expires_delta: Optional custom lifetime
        **claims: Additional claims to embed

    Returns:
        Encoded JWT string
    """
    now = datetime.now(timezone.utc)
    expire = now + (
        expires_delta
        or timedelta(minutes=settings.jwt_access_token_expire_minutes)
    )

    to_encode = dict(claims)
    to_encode.update({"sub": str(user_id), "exp": expire, "iat": now, "type": "access"})

    token = jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)
    logger.debug("Access token created", subject=str(user_id), expires_at=expire.isoformat())
    return token


def decode_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate a JWT token.

    Args:
        token: JWT token string to decode

    Returns:
        Dictionary of decoded token claims

    Raises:
        TokenError: If token is empty, invalid or expired
    """
    if not token:
        raise TokenError("Token cannot be empty", code="EMPTY_TOKEN")

    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError as e:
        logger.warning("Token has expired")
        raise TokenError("Token has expired", code="TOKEN_EXPIRED") from e
    except JWTError as e:
        logger.warning("Invalid token", error_type=type(e).__name__)
        raise TokenError("Invalid token", code="TOKEN_INVALID") from e


def get_token_user_id(token: str) -> int:
    """
    Extract the numeric user id from an access token.

    Raises:
        TokenError: If the token is invalid or its subject is not a positive integer
    """
    payload = decode_token(token)

    if payload.get("type") != "access":
        raise TokenError("Unexpected token type", code="TOKEN_TYPE_INVALID")

    subject = payload.get("sub")
    try:
        user_id = int(subject)
    except (TypeError, ValueError) as e:
        raise TokenError("Token subject is not a user id", code="TOKEN_SUBJECT_INVALID") from e

    if user_id <= 0:
        raise TokenError("Token subject is not a user id", code="TOKEN_SUBJECT_INVALID")
    return user_id


def get_security_headers() -> Dict[str, str]:
    """
    Build security headers added to every response.

    Returns:
        Header name to value mapping; HSTS only outside development
    """
    headers = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Referrer-Policy": "strict-origin-when-cross-origin",
        "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
    }
    if settings.is_production:
        headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    return headers
