"""
JWT Token Verification

Verifies bearer tokens issued by the identity provider (HS256 shared
secret) and extracts the actor identity carried in their claims.
"""

import jwt
import secrets
import logging
from typing import Dict, Any, Optional
from datetime import datetime, timezone

from .config import AuthConfig, get_settings

logger = logging.getLogger(__name__)


class JWTManager:
    """
    Bearer token verifier

    Features:
    - Signature, expiry, audience and (optional) issuer checks
    - Actor identity (id, email, display name) from standard claims
    """

    def __init__(
        self,
        secret_key: Optional[str] = None,
        algorithm: str = "HS256",
        audience: Optional[str] = None,
        issuer: Optional[str] = None,
    ):
        """
        Initialize JWT Manager

        Args:
            secret_key: Shared signing secret
            algorithm: JWT algorithm (default: HS256)
            audience: Expected "aud" claim, None to skip the check
            issuer: Expected "iss" claim, None to skip the check
        """
        if not secret_key:
            # Random secret means no token will verify; fail closed
            logger.warning(
                "No AUTH_JWT_SECRET provided - bearer tokens cannot be verified. "
                "All authenticated requests will be rejected."
            )
            secret_key = secrets.token_urlsafe(64)

        self.secret_key = secret_key
        self.algorithm = algorithm
        self.audience = audience
        self.issuer = issuer

    @classmethod
    def from_config(cls, config: Optional[AuthConfig] = None) -> "JWTManager":
        config = config or get_settings().auth
        return cls(
            secret_key=config.jwt_secret,
            algorithm=config.jwt_algorithm,
            audience=config.jwt_audience,
            issuer=config.jwt_issuer,
        )

    def verify_token(self, token: str, verify_exp: bool = True) -> Dict[str, Any]:
        """
        Verify and decode a JWT token

        Args:
            token: JWT token string
            verify_exp: Verify expiration (default: True)

        Returns:
            Dictionary with verification result and actor claims
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                audience=self.audience,
                issuer=self.issuer,
                options={
                    "verify_exp": verify_exp,
                    "verify_aud": self.audience is not None,
                    "verify_iss": self.issuer is not None,
                },
            )

            if not payload.get("email"):
                return {
                    "valid": False,
                    "error": "Token has no email claim"
                }

            metadata = payload.get("user_metadata") or {}
            exp = payload.get("exp")
            return {
                "valid": True,
                "payload": payload,
                "user_id": payload.get("sub"),
                "email": payload["email"],
                "name": metadata.get("full_name") or metadata.get("name") or payload.get("name"),
                "role": payload.get("role"),
                "expires_at": datetime.fromtimestamp(exp, tz=timezone.utc) if exp else None,
            }

        except jwt.ExpiredSignatureError:
            return {
                "valid": False,
                "error": "Token has expired"
            }
        except jwt.InvalidAudienceError:
            return {
                "valid": False,
                "error": "Invalid token audience"
            }
        except jwt.InvalidIssuerError:
            return {
                "valid": False,
                "error": "Invalid token issuer"
            }
        except jwt.InvalidTokenError as e:
            return {
                "valid": False,
                "error": f"Invalid token: {str(e)}"
            }


# Global JWT manager instance
_jwt_manager_instance: Optional[JWTManager] = None


def get_jwt_manager() -> JWTManager:
    """Get or create JWT manager singleton instance"""
    global _jwt_manager_instance
    if _jwt_manager_instance is None:
        _jwt_manager_instance = JWTManager.from_config()
    return _jwt_manager_instance


__all__ = ["JWTManager", "get_jwt_manager"]
