"""
Signed session tokens for the self-hosted backend.

A token carries the admin user id (sub), the id of the server-side session row
(sid) and the username. The signature and expiry are checked here; whether the
session row still exists is checked by the backend, which is what makes logout
revoke a token before it expires.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from jose import JWTError, jwt

from impressions.exceptions import SessionInvalid

ALGORITHM = "HS256"
TOKEN_TYPE = "admin_session"


def issue_session_token(
    user_id: str, session_id: str, username: str, secret_key: str, ttl: timedelta
) -> str:
    issued_at = datetime.now(timezone.utc)
    claims = {
        "sub": user_id,
        "sid": session_id,
        "username": username,
        "iat": issued_at,
        "exp": issued_at + ttl,
        "type": TOKEN_TYPE,
    }
    return jwt.encode(claims, secret_key, algorithm=ALGORITHM)


def read_session_token(token: str, secret_key: str) -> Dict[str, Any]:
    """
    Decode a session token.

    Raises:
        SessionInvalid: If the token is malformed, forged, expired or of another type
    """
    try:
        claims = jwt.decode(token, secret_key, algorithms=[ALGORITHM])
    except JWTError:
        raise SessionInvalid("Session token is invalid or expired")

    if claims.get("type") != TOKEN_TYPE or not claims.get("sid"):
        raise SessionInvalid("Not an admin session token")

    return claims
