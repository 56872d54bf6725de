"""Abstract base class for caller identity resolution."""

from abc import ABC, abstractmethod
from collections.abc import Mapping

from src.domain.exceptions import UnauthenticatedException


class IdentityServiceBase(ABC):
    """Turns request headers into a caller user ID.

    Implementations should handle:
    - Signed JWT bearer tokens
    """

    def extract_token(self, headers: Mapping[str, str]) -> str:
        """Get the bearer token from an Authorization header.

        Args:
            headers: Request headers (case-insensitive mapping).

        Returns:
            The raw token string.

        Raises:
            UnauthenticatedException: If the header is missing or malformed.
        """
        authorization = headers.get("authorization") or headers.get("Authorization")
        if not authorization:
            raise UnauthenticatedException("Missing Authorization header")

        scheme, _, token = authorization.strip().partition(" ")
        token = token.strip()
        if scheme.lower() != "bearer" or not token:
            raise UnauthenticatedException("Malformed Authorization header")
        return token

    @abstractmethod
    def validate(self, token: str) -> str:
        """Validate a token and return the caller's user ID.

        Args:
            token: Raw bearer token.

        Returns:
            User ID the token was issued to.

        Raises:
            UnauthenticatedException: If the token is invalid or expired.
        """

    def authenticate(self, headers: Mapping[str, str]) -> str:
        """Extract and validate in one step."""
        return self.validate(self.extract_token(headers))
