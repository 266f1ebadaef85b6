from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import logging

import jwt

from api.errors import Unauthenticated
from db.models.user import ROLES

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
SESSION_TTL = timedelta(days=7)
INVALID_TOKEN = "Invalid or expired token"


@dataclass(frozen=True)
class SessionClaims:
    user_id: int
    email: str
    role: str


class SessionIssuer:
    """Mints and verifies stateless signed session tokens."""

    def __init__(self, secret: str, ttl: timedelta = SESSION_TTL):
        self.secret = secret
        self.ttl = ttl

    def issue(self, user_id: int, email: str, role: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "email": email,
            "role": role,
            "iat": now,
            "exp": now + self.ttl,
        }
        token = jwt.encode(payload, self.secret, algorithm=ALGORITHM)
        logger.info(f"Issued session token for user {user_id}, expires at {now + self.ttl}")
        return token

    def verify(self, token: str) -> SessionClaims:
        # Every failure collapses to the same error; the reason is only logged
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[ALGORITHM],
                options={"require": ["exp", "sub"]},
            )
        except jwt.PyJWTError as e:
            logger.debug(f"Session token rejected: {e}")
            raise Unauthenticated(INVALID_TOKEN)

        try:
            user_id = int(payload["sub"])
        except (TypeError, ValueError):
            logger.debug("Session token rejected: bad subject claim")
            raise Unauthenticated(INVALID_TOKEN)

        email = payload.get("email")
        role = payload.get("role")
        if not isinstance(email, str) or role not in ROLES:
            logger.debug("Session token rejected: missing email or role claim")
            raise Unauthenticated(INVALID_TOKEN)

        return SessionClaims(user_id=user_id, email=email, role=role)
