"""Signed session cookie helpers.

Uses PyJWT with HS256 algorithm for signing.
The cookie value carries nothing but the opaque session id; expiry is
decided server-side by the transport session store.
"""

from typing import Optional

import jwt


def create_session_token(session_id: str, secret: str) -> str:
    """Sign a session id for use as cookie value.

    Args:
        session_id: Opaque transport session id.
        secret: Secret key used for HS256 signing.

    Returns:
        Encoded JWT string.
    """
    return jwt.encode({"sid": session_id}, secret, algorithm="HS256")


def read_session_token(token: Optional[str], secret: str) -> Optional[str]:
    """Verify a cookie value and extract the session id.

    Returns:
        The session id, or ``None`` if the token is missing, malformed or
        has an invalid signature.
    """
    if not token:
        return None
    try:
        payload = jwt.decode(token, secret, algorithms=["HS256"])
    except jwt.InvalidTokenError:
        return None
    session_id = payload.get("sid")
    return session_id if isinstance(session_id, str) and session_id else None
