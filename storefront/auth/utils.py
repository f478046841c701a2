from datetime import datetime, timedelta, timezone
import secrets
from typing import List, Optional
from jose import jwt, JWTError
from storefront.auth.constants import ROLES_CLAIM
from storefront.config.settings import config_settings

ACCESS_TOKEN_EXPIRE_MINUTES = int(config_settings.ACCESS_TOKEN_EXPIRE_MINUTES)


# tokens are minted by the identity provider in front of this service , kept here for seed scripts and tests
def create_access_token(user_public_id, user_roles: List[str], expires_dur: int = ACCESS_TOKEN_EXPIRE_MINUTES) -> str:
    now=datetime.now(timezone.utc)
    expiry= now + (timedelta(minutes=expires_dur))

    payload = {
        "sub": str(user_public_id),
        "iat": int(now.timestamp()),
        "exp": int(expiry.timestamp()),
        "jti": secrets.token_hex(16),
        ROLES_CLAIM: list(user_roles),
    }
    return jwt.encode(claims=payload,key=config_settings.JWT_SECRET,algorithm=config_settings.JWT_ALGO)


def decode_token(token: str) -> Optional[dict]:
    """To verify the signature , expiration and user claims of token"""
    try:
        return jwt.decode(
            token,
            key=config_settings.JWT_SECRET,
            algorithms=[config_settings.JWT_ALGO],
        )
    except JWTError:
        return None


def make_cart_session_token() -> str:
    return secrets.token_urlsafe(24)
