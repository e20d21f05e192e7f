import json
import logging
import os
import time
import urllib.request
from typing import Dict, Iterable

from dotenv import load_dotenv
from fastapi import Depends, HTTPException, status, Request
from jose import jwt
from jose.exceptions import JWTError

load_dotenv()

logger = logging.getLogger(__name__)

# === Cognito Configuration ===
COGNITO_REGION = os.getenv("COGNITO_REGION", "eu-north-1")
COGNITO_USER_POOL_ID = os.getenv("COGNITO_USER_POOL_ID")
COGNITO_APP_CLIENT_ID = os.getenv("COGNITO_APP_CLIENT_ID")

COGNITO_ISSUER = f"https://cognito-idp.{COGNITO_REGION}.amazonaws.com/{COGNITO_USER_POOL_ID}"
COGNITO_JWKS_URL = f"{COGNITO_ISSUER}/.well-known/jwks.json"

# Groups allowed to change ledger state
ACCOUNTING_WRITERS = ("admin", "manager")

# Cache for Cognito's public keys (JWKS)
# This avoids fetching the keys on every single request.
jwks_cache = {
    "keys": [],
    "expiration_time": 0,
}


def get_jwks():
    """
    Retrieves the JSON Web Key Set (JWKS) from Cognito.
    Caches the keys for 24 hours.
    """
    global jwks_cache
    if jwks_cache["keys"] and jwks_cache["expiration_time"] > time.time():
        return jwks_cache["keys"]

    logger.info(f"Fetching JWKS from: {COGNITO_JWKS_URL}")
    try:
        with urllib.request.urlopen(COGNITO_JWKS_URL) as response:
            jwks_data = json.loads(response.read().decode("utf-8"))

        jwks_cache = {
            "keys": jwks_data["keys"],
            "expiration_time": time.time() + (60 * 60 * 24)
        }
        return jwks_cache["keys"]
    except Exception as e:
        logger.error(f"Error fetching JWKS: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not fetch Cognito public keys for token validation."
        )


def get_current_user(request: Request) -> Dict[str, any]:
    """
    FastAPI dependency to validate the Cognito JWT from the Authorization header.

    Usage:
        @router.get("/secure-data")
        def secure_endpoint(user: dict = Depends(get_current_user)):
            ...
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header is missing",
        )

    # The token is expected to be in the format "Bearer <token>"
    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format",
        )

    token = parts[1]
    jwks = get_jwks()

    try:
        unverified_header = jwt.get_unverified_header(token)
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token header"
        )

    rsa_key = {}
    for key in jwks:
        if key["kid"] == unverified_header.get("kid"):
            rsa_key = {
                "kty": key["kty"],
                "kid": key["kid"],
                "use": key["use"],
                "n": key["n"],
                "e": key["e"],
            }
            break

    if not rsa_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unable to find a matching public key to verify the token",
        )

    try:
        return jwt.decode(
            token,
            rsa_key,
            algorithms=["RS256"],
            audience=COGNITO_APP_CLIENT_ID,
            issuer=COGNITO_ISSUER,
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired"
        )
    except jwt.JWTClaimsError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token claims: {e}"
        )
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Token validation failed: {e}"
        )


def get_user_identifier(user: Dict[str, any]) -> str:
    """Best human-readable identity in the token, used for created_by/posted_by stamps."""
    for claim in ("email", "username", "cognito:username", "sub"):
        if user.get(claim):
            return user[claim]
    return "unknown"


def get_user_groups(user: Dict[str, any]):
    groups = user.get("cognito:groups") or []
    if isinstance(groups, str):
        groups = [groups]
    return {g.lower() for g in groups}


def require_group(groups: Iterable[str]):
    """Dependency factory: the caller must belong to one of `groups`. Returns the user claims."""
    allowed = {g.lower() for g in groups}

    def dependency(user: dict = Depends(get_current_user)):
        if not get_user_groups(user) & allowed:
            logger.warning(f"User {get_user_identifier(user)} denied; requires one of {sorted(allowed)}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires membership in one of: {', '.join(sorted(allowed))}"
            )
        return user

    return dependency
