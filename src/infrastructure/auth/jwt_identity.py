"""JWT implementation of identity resolution."""

import jwt

from src.commons.telemetry import get_logger
from src.domain.exceptions import UnauthenticatedException
from src.infrastructure.auth.base import IdentityServiceBase


class JWTIdentityService(IdentityServiceBase):
    """Validates HMAC-signed JWTs; the ``sub`` claim is the user ID."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        issuer: str | None = None,
        leeway_seconds: int = 0,
    ) -> None:
        """Initialize the validator.

        Args:
            secret: Shared signing secret.
            algorithm: HMAC algorithm the tokens are signed with.
            issuer: Required ``iss`` claim, or None to skip the check.
            leeway_seconds: Clock skew tolerated on ``exp``/``nbf``.
        """
        if not secret:
            raise ValueError("JWT secret must not be empty")
        self._secret = secret
        self._algorithm = algorithm
        self._issuer = issuer
        self._leeway = leeway_seconds
        self._logger = get_logger(__name__)

    def validate(self, token: str) -> str:
        """Decode the token and return its subject."""
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                issuer=self._issuer,
                leeway=self._leeway,
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise UnauthenticatedException("Token has expired") from e
        except jwt.PyJWTError as e:
            self._logger.debug("Rejected bearer token", extra={"reason": str(e)})
            raise UnauthenticatedException("Invalid token") from e

        subject = claims.get("sub")
        if not isinstance(subject, str) or not subject:
            raise UnauthenticatedException("Token has no subject")
        return subject
