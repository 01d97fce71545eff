"""
Clerk authentication dependencies and utilities for FastAPI.

The session token is read from the ``Authorization: Bearer`` header or, for
browser requests, from Clerk's session cookie.
"""

import base64
from typing import Optional, Dict, Any
from fastapi import HTTPException, Depends, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import logging
import requests
import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from .config import settings

logger = logging.getLogger(__name__)
security = HTTPBearer(auto_error=False)

_jwks: Dict[str, Any] | None = None


def load_jwks() -> Dict[str, Any]:
    global _jwks
    if _jwks is None:
        try:
            resp = requests.get(settings.jwks_url, timeout=5)
            resp.raise_for_status()
            _jwks = resp.json()
        except Exception as e:
            logger.error(f"Could not load JWKS: {e}")
            raise HTTPException(status_code=503, detail="Auth key fetch failed")
    return _jwks


def jwk_to_pem(jwk_key: Dict[str, Any]) -> str:
    # RSA n/e -> PEM
    n_b64 = jwk_key.get("n")
    e_b64 = jwk_key.get("e")
    if not n_b64 or not e_b64:
        raise HTTPException(status_code=401, detail="Invalid JWK")

    def b64url_to_int(b64: str) -> int:
        pad = "=" * (-len(b64) % 4)
        return int.from_bytes(base64.urlsafe_b64decode(b64 + pad), "big")

    pub = rsa.RSAPublicNumbers(b64url_to_int(e_b64), b64url_to_int(n_b64)).public_key()
    return pub.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("utf-8")


def get_public_key_pem(token: str) -> str:
    jwks = load_jwks()
    try:
        header = jwt.get_unverified_header(token)
    except jwt.DecodeError:
        raise HTTPException(status_code=401, detail="Malformed token")
    kid = header.get("kid")
    for key in jwks.get("keys", []):
        if key.get("kid") == kid:
            return jwk_to_pem(key)
    raise HTTPException(status_code=401, detail="Public key not found")


def verify_token(token: str) -> Dict[str, Any]:
    try:
        public_key_pem = get_public_key_pem(token)
        options = {"verify_aud": bool(settings.clerk_audience)}
        payload = jwt.decode(
            token,
            public_key_pem,
            algorithms=["RS256"],
            issuer=settings.clerk_issuer,
            audience=settings.clerk_audience,
            options=options,
        )
        return payload
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidIssuerError:
        raise HTTPException(status_code=401, detail="Invalid issuer")
    except jwt.InvalidTokenError as e:
        logger.error(f"JWT verification failed: {e}")
        raise HTTPException(status_code=401, detail="Invalid token")


class ClerkUser:
    """Represents an authenticated Clerk user."""

    def __init__(self, user_id: str, email: Optional[str] = None,
                 first_name: Optional[str] = None, last_name: Optional[str] = None):
        self.user_id = user_id
        self.email = email
        self.first_name = first_name
        self.last_name = last_name

    def __repr__(self) -> str:
        return f"ClerkUser(user_id={self.user_id!r})"


def extract_user_from_payload(payload: Dict[str, Any]) -> ClerkUser:
    """Extract user information from JWT payload."""
    user_id = payload.get("sub") or payload.get("user_id")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing user ID"
        )
    # Prefer direct claims typical in Clerk JWTs
    email = payload.get("email_address") or payload.get("email")
    if not email:
        emails = payload.get("email_addresses") or []
        if isinstance(emails, list) and emails:
            email = emails[0] if isinstance(emails[0], str) else emails[0].get("email_address")
    return ClerkUser(
        user_id=user_id,
        email=email,
        first_name=payload.get("first_name") or payload.get("given_name"),
        last_name=payload.get("last_name") or payload.get("family_name"),
    )


def get_session_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    """Bearer header wins over the session cookie."""
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.session_cookie_name) or None


async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[ClerkUser]:
    """
    Dependency to get the current user if authenticated, None otherwise.

    Missing, expired or invalid tokens all resolve to None; callers decide
    whether that is an error. Failing to reach the key endpoint is not an
    authentication failure and propagates as a 503.
    """
    token = get_session_token(request, credentials)
    if not token:
        return None

    try:
        payload = verify_token(token)
        user = extract_user_from_payload(payload)
    except HTTPException as e:
        if e.status_code == status.HTTP_401_UNAUTHORIZED:
            logger.info(f"Rejected session token: {e.detail}")
            return None
        raise

    logger.info(f"User authenticated: {user.user_id}")
    return user
