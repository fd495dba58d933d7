from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
import logging

import jwt
from passlib.context import CryptContext

from safeops.core.exceptions import AuthenticationError
from safeops.gateway import eq
from safeops.models.enums import Role
from safeops.services.common import first

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
)

USERS = "users"


def get_password_hash(password: str) -> str:
    """Hash password using argon2."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password with argon2."""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # malformed or foreign hash
        return False


def public_profile(row: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in row.items() if k != "hashed_password"}


class AuthService:
    """Local stand-in for the hosted auth provider: credentials live on the
    ``users`` profile row and sessions are stateless HS256 bearer tokens."""

    def __init__(self, gateway, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 60):
        self.gateway = gateway
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    async def sign_up(self, email: str, password: str, full_name: str, role: Role = Role.SAFETY_OFFICER) -> Dict[str, Any]:
        rows = await self.gateway.insert(USERS, [{
            "email": email.lower(),
            "full_name": full_name,
            "role": Role(role),
            "hashed_password": get_password_hash(password),
        }])
        logger.info("user %s signed up as %s", rows[0]["id"], rows[0]["role"])
        return public_profile(rows[0])

    async def sign_in(self, email: str, password: str) -> str:
        user = first(await self.gateway.select(USERS, filters=[eq("email", email.lower())]))
        if not user or not verify_password(password, user["hashed_password"]):
            raise AuthenticationError("Incorrect email or password")
        return self.create_access_token(user["id"], user["role"])

    def create_access_token(self, user_id: int, role: str, expires_delta: Optional[timedelta] = None) -> str:
        now = datetime.now(timezone.utc)
        exp = now + (expires_delta or timedelta(minutes=self.expire_minutes))
        payload = {"sub": str(user_id), "exp": int(exp.timestamp()), "role": role}
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def decode_access_token(self, token: str) -> dict:
        return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])

    async def get_current_user(self, token: str) -> Optional[Dict[str, Any]]:
        try:
            payload = self.decode_access_token(token)
            user_id = int(payload["sub"])
        except (jwt.PyJWTError, KeyError, ValueError) as exc:
            logger.info("rejected token: %s", exc)
            return None
        user = first(await self.gateway.select(USERS, filters=[eq("id", user_id)]))
        return public_profile(user) if user else None
