"""Password hashing and JWT creation/verification for authentication."""

import asyncio
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from authcore.core.config import Settings
from authcore.core.errors import TokenExpired, TokenInvalid, TokenSigningError

# bcrypt only looks at the first 72 bytes of its input.
BCRYPT_MAX_BYTES = 72


def _password_bytes(plain_password: str) -> bytes:
    return plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(plain_password: str, rounds: int = 12) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    return bcrypt.hashpw(
        _password_bytes(plain_password), bcrypt.gensalt(rounds=rounds)
    ).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash (constant-time compare)."""
    try:
        return bcrypt.checkpw(_password_bytes(plain_password), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


class PasswordHasher:
    """
    Runs bcrypt on a worker pool so hashing never blocks the event loop.

    bcrypt releases the GIL while it works, so a thread pool gives real
    parallelism for concurrent logins.
    """

    def __init__(self, rounds: int = 12, workers: int = 4) -> None:
        self.rounds = rounds
        self._executor = ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="bcrypt"
        )
        self._dummy_hash: str | None = None

    async def hash(self, plain_password: str) -> str:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self._executor, hash_password, plain_password, self.rounds
        )

    async def verify(self, plain_password: str, hashed: str) -> bool:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self._executor, verify_password, plain_password, hashed
        )

    async def verify_dummy(self, plain_password: str) -> None:
        """Spend the same bcrypt work as a real check against a throwaway hash."""
        if self._dummy_hash is None:
            self._dummy_hash = await self.hash("dummy-password-for-timing")
        await self.verify(plain_password, self._dummy_hash)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)


@dataclass(frozen=True)
class TokenClaims:
    """Identity claims recovered from a verified token."""

    subject_id: str
    role: str
    issued_at: datetime
    expires_at: datetime


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TokenCodec:
    """
    Issues and verifies signed JWTs carrying ``sub`` (account id) and ``role``.

    Tokens are stateless: validity depends only on the signature and ``exp``.
    The clock is injectable so expiry can be checked at exact instants.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expire_minutes: int = 60,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._secret = secret
        self.algorithm = algorithm
        self.lifetime = timedelta(minutes=expire_minutes)
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenCodec":
        return cls(
            secret=settings.JWT_SECRET.get_secret_value(),
            algorithm=settings.JWT_ALGORITHM,
            expire_minutes=settings.JWT_EXPIRE_MINUTES,
        )

    def issue(self, subject_id: str, role: str) -> str:
        """Create a token for (subject_id, role) expiring after the configured window."""
        now = self._clock()
        payload: dict[str, Any] = {
            "sub": str(subject_id),
            "role": role,
            "iat": now,
            "exp": now + self.lifetime,
        }
        try:
            return jwt.encode(payload, self._secret, algorithm=self.algorithm)
        except (jwt.PyJWTError, NotImplementedError, TypeError, ValueError) as e:
            raise TokenSigningError() from e

    def verify(self, token: str) -> TokenClaims:
        """
        Return the claims of a valid token.

        Raises TokenInvalid for bad signature or structure, TokenExpired when
        the current time is at or past ``exp``. Expiry is checked against the
        codec's clock after the signature has been verified.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"verify_exp": False, "verify_iat": False},
            )
        except jwt.PyJWTError as e:
            raise TokenInvalid(str(e)) from e

        sub = payload.get("sub")
        role = payload.get("role")
        exp = payload.get("exp")
        iat = payload.get("iat")
        if not isinstance(sub, str) or not sub or not isinstance(role, str):
            raise TokenInvalid("Invalid token payload")
        # bool is an int subclass; reject it explicitly
        if not isinstance(exp, (int, float)) or isinstance(exp, bool):
            raise TokenInvalid("Invalid token expiry")

        expires_at = datetime.fromtimestamp(exp, UTC)
        if self._clock() >= expires_at:
            raise TokenExpired("Token has expired")

        issued_at = (
            datetime.fromtimestamp(iat, UTC)
            if isinstance(iat, (int, float)) and not isinstance(iat, bool)
            else expires_at - self.lifetime
        )
        return TokenClaims(
            subject_id=sub, role=role, issued_at=issued_at, expires_at=expires_at
        )
