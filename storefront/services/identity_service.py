# storefront/services/identity_service.py
from dataclasses import dataclass
from datetime import datetime, timezone, timedelta

import jwt

from storefront.domain.errors import Unauthenticated
from storefront.domain.order_status import Role
from storefront.utils.settings import JWT_SECRET, JWT_ALGORITHM, TOKEN_TTL_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Principal:
    """Kto wola operacje, wyliczane raz z tokenu i przekazywane jawnie."""

    user_id: int
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class IdentityService:
    def __init__(self, secret: str | None = None, algorithm: str | None = None, ttl: int | None = None):
        self.secret = secret or JWT_SECRET
        self.algorithm = algorithm or JWT_ALGORITHM
        self.ttl = ttl if ttl is not None else TOKEN_TTL_SECONDS

    def issue_token(self, user_id: int, role: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "role": Role(role).value,
            "iat": now,
            "exp": now + timedelta(seconds=self.ttl),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode(self, token: str | None) -> Principal:
        if not token:
            raise Unauthenticated("Brak tokenu")
        try:
            claims = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError as e:
            raise Unauthenticated("Token wygasl") from e
        except jwt.InvalidTokenError as e:
            logger.warning(f"Odrzucono token: {e}")
            raise Unauthenticated("Niepoprawny token") from e

        try:
            return Principal(user_id=int(claims["sub"]), role=Role(claims.get("role", "user")))
        except (KeyError, ValueError) as e:
            raise Unauthenticated("Niepoprawne claimy tokenu") from e
