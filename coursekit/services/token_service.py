"""Bearer-token minting and verification (ES256).

Learners authenticate with the identity provider, not with this service.
Every /v1 route receives the provider's access token and only needs to
verify it; the learner id is the ``sub`` claim.

Verification key:
  JWT_PUBLIC_KEY set    the provider's PEM public key.  Locally minted
                        tokens are then rejected.
  JWT_PUBLIC_KEY unset  an EC key pair generated on import.  Tokens from
                        create_access_token() verify in this process only,
                        which is all dev and the test suite need.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from coursekit.core.config import SETTINGS

ALGORITHM = "ES256"
ISSUER = SETTINGS.jwt_issuer
AUDIENCE = SETTINGS.jwt_audience
LOCAL_TOKEN_TTL_MIN = 15

_signing_key = ec.generate_private_key(ec.SECP256R1())


def _load_verification_key(pem: str | None) -> ec.EllipticCurvePublicKey:
    if not pem:
        return _signing_key.public_key()
    key = serialization.load_pem_public_key(pem.replace("\\n", "\n").encode())
    if not isinstance(key, ec.EllipticCurvePublicKey):
        raise ValueError("JWT_PUBLIC_KEY must be an EC public key for ES256")
    return key


_verification_key = _load_verification_key(SETTINGS.jwt_public_key)


def create_access_token(
    *,
    sub: str,
    roles: list[str] | None = None,
    ttl_minutes: int = LOCAL_TOKEN_TTL_MIN,
) -> str:
    """Mint a token the way the identity provider would (dev and tests)."""
    issued = datetime.now(UTC)
    claims = {
        "sub": sub,
        "iss": ISSUER,
        "aud": AUDIENCE,
        "iat": issued,
        "exp": issued + timedelta(minutes=ttl_minutes),
        "jti": uuid.uuid4().hex,
        "roles": roles or ["learner"],
    }
    return jwt.encode(claims, _signing_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Verify signature, issuer, audience and expiry; return the claims.

    Only ES256 is accepted, which rules out alg:none and HS256-with-the-
    public-key confusion.  Raises jwt.ExpiredSignatureError or
    jwt.InvalidTokenError.
    """
    return jwt.decode(
        token,
        _verification_key,
        algorithms=[ALGORITHM],
        issuer=ISSUER,
        audience=AUDIENCE,
        options={"require": ["sub", "exp", "iat"]},
    )
