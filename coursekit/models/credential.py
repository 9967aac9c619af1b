from __future__ import annotations

from dataclasses import dataclass, field

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

# Cookie names the CDN looks for on requests under a signed path.
POLICY_COOKIE = "CloudFront-Policy"
SIGNATURE_COOKIE = "CloudFront-Signature"
KEY_PAIR_ID_COOKIE = "CloudFront-Key-Pair-Id"


@dataclass(frozen=True, slots=True)
class SigningKeyMaterial:
    """Key-pair id plus the parsed RSA private key.

    The key is excluded from repr so an accidental log line or traceback
    never prints it.
    """

    key_id: str
    private_key: RSAPrivateKey = field(repr=False)


@dataclass(frozen=True, slots=True)
class ResourceToken:
    """A signed URL for one media object."""

    url: str
    resource_url: str
    key_id: str
    expires_at: int  # epoch seconds
    signature: str = field(repr=False)


@dataclass(frozen=True, slots=True)
class CoursePass:
    """Signed-cookie values granting access to every object under one course."""

    resource: str
    policy: str = field(repr=False)
    signature: str = field(repr=False)
    key_id: str
    expires_at: int  # epoch seconds

    def cookies(self) -> dict[str, str]:
        return {
            POLICY_COOKIE: self.policy,
            SIGNATURE_COOKIE: self.signature,
            KEY_PAIR_ID_COOKIE: self.key_id,
        }
