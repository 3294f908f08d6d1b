"""JWT issuing and verification for access and refresh tokens."""

import time
from typing import Type, TypeVar
from uuid import UUID, uuid4

import jwt
import structlog
from pydantic import ValidationError

from authcore.errors import InvalidToken, MissingSubject
from authcore.models.auth import AccessClaims, RefreshClaims, TokenPair

logger = structlog.get_logger(__name__)

# Constants
JWT_ALGORITHM = "HS512"
# Only the HMAC family is ever accepted; "none" and asymmetric algorithms are rejected
ACCEPTED_ALGORITHMS = ["HS256", "HS384", "HS512"]
ACCESS_TOKEN_EXPIRE_MINUTES = 15
REFRESH_TOKEN_EXPIRE_DAYS = 7

ClaimsT = TypeVar("ClaimsT", AccessClaims, RefreshClaims)


class TokenSigner:
    """Issues and verifies signed token pairs bound to a user id.

    The secret is fixed at construction; the signer holds no other state and
    is safe to share between concurrent tasks.
    """

    def __init__(
        self,
        secret: str,
        access_ttl_seconds: int = ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        refresh_ttl_seconds: int = REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
    ):
        if not secret:
            raise ValueError("TokenSigner requires a non-empty secret")
        self._secret = secret
        self._access_ttl = access_ttl_seconds
        self._refresh_ttl = refresh_ttl_seconds

    @property
    def access_ttl_seconds(self) -> int:
        return self._access_ttl

    @property
    def refresh_ttl_seconds(self) -> int:
        return self._refresh_ttl

    def issue_pair(self, user_id: UUID) -> TokenPair:
        """Create a signed access/refresh pair for user_id.

        Each half gets its own random jti, so no two tokens are ever identical.
        """
        now = int(time.time())
        subject = str(user_id)

        access = AccessClaims(
            sub=subject,
            iat=now,
            exp=now + self._access_ttl,
            jti=str(uuid4()),
        )
        refresh = RefreshClaims(
            sub=subject,
            iat=now,
            exp=now + self._refresh_ttl,
            jti=str(uuid4()),
        )

        pair = TokenPair(
            access_token=self._encode(access),
            refresh_token=self._encode(refresh),
            refresh_jti=refresh.jti,
        )
        logger.debug(
            "token_pair_issued",
            user_id=subject,
            access_jti=access.jti,
            refresh_jti=refresh.jti,
        )
        return pair

    def parse(self, token: str) -> str:
        """Verify a token of either type and return its subject.

        Raises:
            InvalidToken: Bad signature, wrong algorithm, malformed, or expired
            MissingSubject: The verified claim set carries no subject
        """
        payload = self._decode(token)
        subject = payload.get("sub")
        if not subject:
            raise MissingSubject()
        return subject

    def parse_access(self, token: str) -> AccessClaims:
        """Verify an access token and return its typed claims."""
        return self._parse_typed(token, AccessClaims)

    def parse_refresh(self, token: str) -> RefreshClaims:
        """Verify a refresh token and return its typed claims."""
        return self._parse_typed(token, RefreshClaims)

    def _parse_typed(self, token: str, claims_type: Type[ClaimsT]) -> ClaimsT:
        payload = self._decode(token)
        if not payload.get("sub"):
            raise MissingSubject()
        try:
            return claims_type.model_validate(payload)
        except ValidationError as e:
            logger.warning(
                "token_claims_rejected",
                expected_typ=claims_type.model_fields["typ"].default,
                got_typ=payload.get("typ"),
            )
            raise InvalidToken() from e

    def _encode(self, claims: AccessClaims | RefreshClaims) -> str:
        return jwt.encode(claims.model_dump(), self._secret, algorithm=JWT_ALGORITHM)

    def _decode(self, token: str) -> dict:
        try:
            return jwt.decode(
                token,
                self._secret,
                algorithms=ACCEPTED_ALGORITHMS,
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise InvalidToken("token has expired") from e
        except jwt.InvalidTokenError as e:
            logger.info("token_rejected", reason=type(e).__name__)
            raise InvalidToken() from e
