"""Bearer Token Validation - Principal extraction for the session collaborator"""
import jwt
from typing import Any, Dict, Optional

from ..config.settings import settings
from ..domain.enums import UserRole
from ..domain.errors import AuthenticationError
from ..domain.models import ActorContext
from .logger import get_logger

logger = get_logger(__name__)


class JWTValidator:
    """
    Validate bearer tokens issued by the login service

    Expected claims: ``sub`` (user id), ``role``, optional ``department``
    and ``name``.
    """

    def __init__(self, secret: Optional[str] = None, algorithm: Optional[str] = None):
        self._secret = secret or settings.jwt_secret
        self._algorithm = algorithm or settings.jwt_algorithm

    def validate_token(self, token: str) -> Dict[str, Any]:
        """
        Validate a token and return its claims

        Raises:
            AuthenticationError: If token is missing, expired or invalid
        """
        if not token:
            raise AuthenticationError("Token is missing")

        if token.startswith("Bearer "):
            token = token[7:]

        try:
            return jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"verify_exp": True, "require": ["sub"]}
            )
        except jwt.ExpiredSignatureError:
            logger.warning("Token expired")
            raise AuthenticationError("Token has expired")
        except jwt.PyJWTError as e:
            logger.warning(f"JWT validation error: {e}")
            raise AuthenticationError(f"Invalid token: {str(e)}")

    def get_actor_context(self, token: str) -> ActorContext:
        """Build the acting principal from a validated token"""
        claims = self.validate_token(token)

        try:
            role = UserRole(claims.get("role"))
        except ValueError:
            logger.warning(f"Unknown role claim: {claims.get('role')!r}")
            raise AuthenticationError("Token carries an unknown role")

        return ActorContext(
            id=str(claims["sub"]),
            role=role,
            department=claims.get("department"),
            display_name=claims.get("name")
        )


# Global validator instance
_jwt_validator: Optional[JWTValidator] = None


def get_jwt_validator() -> JWTValidator:
    """Get global JWT validator instance"""
    global _jwt_validator
    if _jwt_validator is None:
        _jwt_validator = JWTValidator()
    return _jwt_validator


def get_current_user(authorization: str) -> ActorContext:
    """Get current user from authorization header"""
    if not authorization:
        raise AuthenticationError("Authorization header is missing")

    return get_jwt_validator().get_actor_context(authorization)
