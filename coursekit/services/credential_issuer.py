"""Signed, time-limited media credentials.

Two shapes, both signed with the key from SigningKeyCache:

  ResourceToken  a signed URL for one object (a lesson's video file).
                 Lifetime is the caller's expiry_minutes.
  CoursePass     three cookie values scoped to https://<domain>/<prefix>/*
                 for 24 hours, so an HLS player can fetch every segment
                 of every lesson without a fresh URL per request.

The issuer keeps no record of what it issued.  Revocation happens at the
enrollment gate, which runs before every issue: a refunded learner's
existing credential simply runs out.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from coursekit.core.clock import Clock, utcnow
from coursekit.core.errors import ConfigurationError
from coursekit.core.metrics import CREDENTIALS_ISSUED
from coursekit.models.credential import CoursePass, ResourceToken
from coursekit.services.cloudfront_signer import sign_custom_policy, sign_url, signer_for
from coursekit.services.signing_key_cache import SigningKeyCache

logger = logging.getLogger(__name__)

COURSE_PASS_TTL = timedelta(hours=24)


def _normalize_domain(domain: str) -> str:
    domain = domain.strip()
    for scheme in ("https://", "http://"):
        domain = domain.removeprefix(scheme)
    return domain.rstrip("/")


class CredentialIssuer:
    def __init__(
        self,
        key_cache: SigningKeyCache,
        *,
        domain: str | None,
        clock: Clock = utcnow,
    ) -> None:
        missing = [
            name
            for name, value in (
                ("CLOUDFRONT_DOMAIN", domain),
                ("CLOUDFRONT_KEY_PAIR_ID", key_cache.key_id),
                ("CLOUDFRONT_PRIVATE_KEY_SECRET_NAME", key_cache.secret_name),
            )
            if not value or not value.strip()
        ]
        if missing:
            raise ConfigurationError(f"media signing is missing {', '.join(missing)}")

        self._key_cache = key_cache
        self._domain = _normalize_domain(domain)  # type: ignore[arg-type]
        self._clock = clock

    @property
    def domain(self) -> str:
        return self._domain

    def _now_epoch(self) -> int:
        return int(self._clock().timestamp())

    async def issue_resource_token(self, resource_key: str, expiry_minutes: int) -> ResourceToken:
        """Sign a URL for https://<domain>/<resource_key>.

        Raises ValueError for a non-positive or non-integer expiry and
        KeyUnavailable when the signing key cannot be fetched.
        """
        if isinstance(expiry_minutes, bool) or not isinstance(expiry_minutes, int):
            raise ValueError(f"expiry_minutes must be an int (got {expiry_minutes!r})")
        if expiry_minutes <= 0:
            raise ValueError(f"expiry_minutes must be positive (got {expiry_minutes})")
        resource_key = resource_key.lstrip("/")
        if not resource_key:
            raise ValueError("resource_key must not be empty")

        url = f"https://{self._domain}/{resource_key}"
        expires_at = self._now_epoch() + expiry_minutes * 60

        material = await self._key_cache.get_key()
        signed, signature = sign_url(signer_for(material), url, expires_at)

        CREDENTIALS_ISSUED.labels(kind="resource_token").inc()
        logger.debug("Issued resource token for %s (expires_at=%d)", resource_key, expires_at)
        return ResourceToken(
            url=signed,
            resource_url=url,
            key_id=material.key_id,
            expires_at=expires_at,
            signature=signature,
        )

    async def issue_course_pass(self, course_path_prefix: str) -> CoursePass:
        prefix = course_path_prefix.strip("/")
        if not prefix:
            raise ValueError("course_path_prefix must not be empty")

        resource = f"https://{self._domain}/{prefix}/*"
        expires_at = self._now_epoch() + int(COURSE_PASS_TTL.total_seconds())
        material = await self._key_cache.get_key()
        policy, signature = sign_custom_policy(signer_for(material), resource, expires_at)

        CREDENTIALS_ISSUED.labels(kind="course_pass").inc()
        logger.debug("Issued course pass for %s (expires_at=%d)", prefix, expires_at)
        return CoursePass(
            resource=resource,
            policy=policy,
            signature=signature,
            key_id=material.key_id,
            expires_at=expires_at,
        )
