"""Verification of externally issued JWT access tokens."""

import jwt
from datetime import datetime, timezone, timedelta
from typing import Dict, Any, Optional
from uuid import UUID, uuid4

from fastapi import HTTPException, status

from ..config import get_config


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


class JWTTokenManager:
    """Signs and verifies HS256 access tokens carrying the caller identity."""

    def __init__(self):
        """Initialize JWT token manager with configuration."""
        config = get_config()
        self.secret_key = config.app.jwt_secret_key
        self.algorithm = config.app.jwt_algorithm
        self.access_token_expires_minutes = config.app.jwt_access_token_expires_minutes

    def create_access_token(
        self,
        user_id: UUID,
        email: Optional[str] = None,
        role: str = "user",
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        expires_minutes: Optional[int] = None,
    ) -> str:
        """
        Create an access token for a user identity.

        Tokens are normally minted by the identity provider; this exists for
        tooling and tests that share the signing key.

        Args:
            user_id: UUID of the user, stored as the subject
            email: Optional email claim
            role: Role claim, ``user`` or ``admin``
            first_name: Optional given name claim
            last_name: Optional family name claim
            expires_minutes: Lifetime override; negative values mint expired tokens

        Returns:
            Encoded JWT
        """
        now = datetime.now(timezone.utc)
        if expires_minutes is None:
            expires_minutes = self.access_token_expires_minutes

        payload = {
            "sub": str(user_id),
            "role": role,
            "iat": now,
            "exp": now + timedelta(minutes=expires_minutes),
            "jti": str(uuid4()),
            "type": "access",
        }
        if email is not None:
            payload["email"] = email
        if first_name is not None:
            payload["first_name"] = first_name
        if last_name is not None:
            payload["last_name"] = last_name

        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify_access_token(self, token: str) -> Dict[str, Any]:
        """
        Verify and decode access token.

        Args:
            token: JWT access token

        Returns:
            Decoded token payload with ``sub`` parsed into ``user_id``

        Raises:
            HTTPException: If token is invalid, expired, or wrong type
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            raise _unauthorized("Access token has expired")
        except jwt.InvalidTokenError:
            raise _unauthorized("Invalid access token")

        if payload.get("type", "access") != "access":
            raise _unauthorized("Invalid token type")

        try:
            payload["user_id"] = UUID(str(payload["sub"]))
        except ValueError:
            raise _unauthorized("Invalid token subject")

        return payload


# Global instance
jwt_manager = JWTTokenManager()
