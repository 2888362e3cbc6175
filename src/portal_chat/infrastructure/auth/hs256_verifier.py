from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt

from portal_chat.application.exceptions import AuthenticationError


class HS256Verifier:
    """Issue and verify realtime tokens signed with a shared HS256 secret.

    Claims: ``uid`` (falls back to ``sub``) and ``exp``.
    """

    def __init__(self, secret: str, algorithm: str = "HS256", ttl_seconds: int = 7200) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._ttl = timedelta(seconds=ttl_seconds)

    def issue(self, user_id: str) -> str:
        now = datetime.now(timezone.utc)
        return jwt.encode(
            {"uid": user_id, "iat": now, "exp": now + self._ttl},
            self._secret,
            algorithm=self._algorithm,
        )

    async def verify(self, token: str) -> str:
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except jwt.PyJWTError as exc:
            raise AuthenticationError(str(exc)) from exc
        user_id = payload.get("uid") or payload.get("sub")
        if not user_id:
            raise AuthenticationError("Token carries no user id")
        return str(user_id)
