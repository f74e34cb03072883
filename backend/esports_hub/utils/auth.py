"""Bearer tokens issued by the identity provider.

The hub only verifies tokens. `create_access_token` exists for local tooling
and tests that need a signed token for a known user.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Sequence

import jwt
from jwt import InvalidTokenError

DEFAULT_TOKEN_LIFETIME = timedelta(minutes=30)
# users.id is VARCHAR(64)
MAX_USER_ID_LENGTH = 64
_REQUIRED_CLAIMS = ["sub", "exp"]


def create_access_token(
    *,
    user_id: str,
    secret: str,
    algorithm: str = "HS256",
    expires_delta: timedelta | None = None,
    claims: Mapping[str, Any] | None = None,
) -> str:
    issued_at = datetime.now(timezone.utc)
    payload: dict[str, Any] = dict(claims or {})
    payload.update(
        sub=user_id,
        iat=issued_at,
        exp=issued_at + (expires_delta or DEFAULT_TOKEN_LIFETIME),
    )
    return jwt.encode(payload, secret, algorithm=algorithm)


def decode_access_token(
    token: str,
    *,
    secret: str,
    algorithms: Sequence[str],
) -> str:
    """Return the user id carried in `sub`. Raises ValueError for any unusable token."""
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=list(algorithms),
            options={"require": _REQUIRED_CLAIMS},
        )
    except InvalidTokenError as exc:
        raise ValueError("invalid token") from exc

    user_id = payload["sub"]
    if not isinstance(user_id, str) or not user_id.strip():
        raise ValueError("token missing sub")
    if len(user_id) > MAX_USER_ID_LENGTH:
        raise ValueError("token sub is not a user id")
    return user_id
