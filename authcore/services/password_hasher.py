"""bcrypt password hashing."""

import bcrypt
import structlog

from authcore.errors import HashingFailed, MalformedHash

logger = structlog.get_logger(__name__)

DEFAULT_ROUNDS = 12


class PasswordHasher:
    """Salted, deliberately slow one-way hashing with a fixed work factor."""

    def __init__(self, rounds: int = DEFAULT_ROUNDS):
        self.rounds = rounds
        # Computed once so the first unknown-user login costs the same as the rest
        self._dummy_hash = self.hash("authcore-timing-equalizer")

    def hash(self, password: str) -> bytes:
        """Hash a password using bcrypt.

        Args:
            password: Plain-text password to hash

        Returns:
            Bcrypt hash bytes

        Raises:
            HashingFailed: If bcrypt rejects the input or salt generation fails
        """
        try:
            return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds))
        except (ValueError, OSError) as e:
            logger.error("password_hash_failed", error=str(e))
            raise HashingFailed() from e

    def verify(self, password_hash: bytes, password: str) -> bool:
        """Verify a password against a bcrypt hash in constant time.

        Args:
            password_hash: Stored bcrypt hash
            password: Plain-text password to check

        Returns:
            True if the password matches, False otherwise

        Raises:
            MalformedHash: If the stored hash is not a usable bcrypt hash
        """
        encoded = password.encode("utf-8")
        if len(encoded) > 72:
            # Nothing this long can have been hashed
            return False
        try:
            return bcrypt.checkpw(encoded, bytes(password_hash))
        except ValueError as e:
            logger.error("password_hash_malformed", error=str(e))
            raise MalformedHash() from e

    def dummy_verify(self, password: str) -> None:
        """Burn one bcrypt check so unknown users cost as much as wrong passwords."""
        self.verify(self._dummy_hash, password)
