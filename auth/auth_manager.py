"""
JWT authentication for the practice API.

Access tokens carry the user id (``sub``), the user's role and, for
client-portal users, the linked client id. Tokens are issued elsewhere
(login is out of scope here); ``issue_access_token`` exists for that
caller and for tests.
"""

import os
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

import jwt
from loguru import logger

from security.policy.permissions import RoleLike, parse_role


@dataclass
class AuthConfig:
    """JWT settings, read from the environment."""
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    jwt_expiry: int = 3600

    @classmethod
    def from_env(cls) -> "AuthConfig":
        secret = os.getenv("JWT_SECRET")
        if not secret:
            raise ValueError("JWT_SECRET environment variable not set. Cannot initialize auth system.")
        return cls(
            jwt_secret=secret,
            jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            jwt_expiry=int(os.getenv("JWT_EXPIRY_SECONDS", "3600")),
        )


class AuthManager:
    """Authentication manager"""

    def __init__(self, config: AuthConfig = None):
        config = config or AuthConfig.from_env()
        if len(config.jwt_secret) < 32:
            logger.warning("JWT_SECRET is less than 32 bytes - use a stronger secret!")
        self.jwt_secret = config.jwt_secret
        self.jwt_algorithm = config.jwt_algorithm
        self.jwt_expiry = config.jwt_expiry
        logger.info("AuthManager initialized")

    # ==================== TOKENS ====================

    def issue_access_token(
        self,
        user_id: str,
        role: RoleLike,
        client_id: Optional[str] = None,
        email: Optional[str] = None,
    ) -> str:
        """Encode an access token for ``user_id`` holding ``role``."""
        payload = {
            "sub": user_id,
            "role": parse_role(role).value,
            "exp": datetime.utcnow() + timedelta(seconds=self.jwt_expiry),
        }
        if email:
            payload["email"] = email
        if client_id:
            payload["client_id"] = client_id

        token = jwt.encode(payload, self.jwt_secret, algorithm=self.jwt_algorithm)
        logger.debug(f"[TOKEN_ISSUE] Access token issued for user: {user_id}")
        return token

    def verify_token(self, token: str) -> Optional[dict]:
        """Verify JWT token and return payload"""
        logger.debug(f"[TOKEN_VERIFY] Verifying JWT token")

        try:
            payload = jwt.decode(token, self.jwt_secret, algorithms=[self.jwt_algorithm])
            logger.debug(f"[TOKEN_VERIFY] Token verified successfully for user: {payload.get('sub')}")
            return payload
        except jwt.ExpiredSignatureError:
            logger.warning(f"[TOKEN_VERIFY] Token expired")
            return None
        except jwt.InvalidTokenError as e:
            logger.warning(f"[TOKEN_VERIFY] Invalid token: {e}")
            return None


_auth_manager: Optional[AuthManager] = None


def get_auth_manager() -> AuthManager:
    """Get the process-wide AuthManager, creating it on first use."""
    global _auth_manager
    if _auth_manager is None:
        _auth_manager = AuthManager()
    return _auth_manager


def reset_auth_manager():
    """Drop the cached AuthManager so the next call re-reads the environment."""
    global _auth_manager
    _auth_manager = None
