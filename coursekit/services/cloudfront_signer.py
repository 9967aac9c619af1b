"""CDN URL and cookie signing on top of botocore's CloudFrontSigner.

botocore builds the policy documents, encodes them in the edge's URL-safe
base64 variant and assembles the query string.  This module supplies the
one piece it leaves to the caller, the RSA signature, and turns its
output into the two shapes the issuer hands out:

  canned policy   one exact URL + an expiry.  The edge rebuilds the
                  policy from the URL and the Expires parameter.
  custom policy   a wildcard resource + an expiry, transmitted as the
                  Policy parameter.  Used for course-wide cookies.

Signature = RSA PKCS#1 v1.5 over SHA-1 of the policy bytes.  SHA-1 is the
edge's requirement.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from urllib.parse import parse_qsl, urlsplit

from botocore.signers import CloudFrontSigner
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from coursekit.models.credential import SigningKeyMaterial


def rsa_sha1_signer(private_key: rsa.RSAPrivateKey) -> Callable[[bytes], bytes]:
    def sign(message: bytes) -> bytes:
        return private_key.sign(message, padding.PKCS1v15(), hashes.SHA1())

    return sign


def signer_for(material: SigningKeyMaterial) -> CloudFrontSigner:
    return CloudFrontSigner(material.key_id, rsa_sha1_signer(material.private_key))


def _moment(expires_at: int) -> datetime:
    return datetime.fromtimestamp(expires_at, UTC)


def _query_params(signed: str) -> dict[str, str]:
    return dict(parse_qsl(urlsplit(signed).query))


def sign_url(signer: CloudFrontSigner, url: str, expires_at: int) -> tuple[str, str]:
    """Canned-policy signed URL.  Returns (signed_url, signature)."""
    signed = signer.generate_presigned_url(url, date_less_than=_moment(expires_at))
    return signed, _query_params(signed)["Signature"]


def sign_custom_policy(
    signer: CloudFrontSigner, resource: str, expires_at: int
) -> tuple[str, str]:
    """Custom-policy values for a wildcard resource.  Returns (policy, signature).

    Both are already in the edge's base64 alphabet, ready to be used as
    cookie values.
    """
    policy = signer.build_policy(resource, _moment(expires_at))
    # Any URL works as the carrier: only the Policy/Signature values are kept.
    params = _query_params(signer.generate_presigned_url(resource, policy=policy))
    return params["Policy"], params["Signature"]
