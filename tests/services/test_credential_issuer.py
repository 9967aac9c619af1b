from __future__ import annotations

import asyncio
import base64
import json
import time
from datetime import UTC, datetime
from urllib.parse import parse_qs, urlsplit

import pytest
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from coursekit.core.errors import ConfigurationError, KeyUnavailable
from coursekit.services.credential_issuer import CredentialIssuer
from coursekit.services.secret_store import InMemorySecretStore
from coursekit.services.signing_key_cache import SigningKeyCache
from tests.conftest import TEST_DOMAIN, TEST_KEY_ID, TEST_SECRET_NAME

FIXED_NOW = datetime(2025, 1, 15, 12, 0, tzinfo=UTC)
FIXED_EPOCH = int(FIXED_NOW.timestamp())


def _edge_b64decode(value: str) -> bytes:
    return base64.b64decode(value.translate(str.maketrans({"-": "+", "_": "=", "~": "/"})))


def _canned_policy(url: str, expires_at: int) -> bytes:
    statement = {"Resource": url, "Condition": {"DateLessThan": {"AWS:EpochTime": expires_at}}}
    return json.dumps({"Statement": [statement]}, separators=(",", ":")).encode()


def _issuer(store: InMemorySecretStore, *, clock=lambda: FIXED_NOW, **kwargs) -> CredentialIssuer:
    cache = SigningKeyCache(
        store,
        secret_name=kwargs.pop("secret_name", TEST_SECRET_NAME),
        key_id=kwargs.pop("key_id", TEST_KEY_ID),
    )
    return CredentialIssuer(cache, domain=kwargs.pop("domain", TEST_DOMAIN), clock=clock)


# ---- resource tokens ----


def test_resource_token_url_and_expiry(secret_store: InMemorySecretStore) -> None:
    token = asyncio.run(
        _issuer(secret_store).issue_resource_token("courses/c1/lesson-1.mp4", 30)
    )
    assert token.resource_url == f"https://{TEST_DOMAIN}/courses/c1/lesson-1.mp4"
    assert token.expires_at == FIXED_EPOCH + 30 * 60
    assert token.key_id == TEST_KEY_ID

    parts = urlsplit(token.url)
    assert f"{parts.scheme}://{parts.netloc}{parts.path}" == token.resource_url
    query = parse_qs(parts.query)
    assert query["Expires"] == [str(token.expires_at)]
    assert query["Key-Pair-Id"] == [TEST_KEY_ID]
    assert query["Signature"] == [token.signature]


def test_resource_token_signature_verifies(
    secret_store: InMemorySecretStore, signing_key: rsa.RSAPrivateKey
) -> None:
    token = asyncio.run(_issuer(secret_store).issue_resource_token("videos/a.mp4", 5))
    signing_key.public_key().verify(
        _edge_b64decode(token.signature),
        _canned_policy(token.resource_url, token.expires_at),
        padding.PKCS1v15(),
        hashes.SHA1(),
    )


def test_resource_token_expiry_tracks_wall_clock(secret_store: InMemorySecretStore) -> None:
    issuer = _issuer(secret_store, clock=lambda: datetime.now(UTC))
    before = int(time.time())
    token = asyncio.run(issuer.issue_resource_token("videos/a.mp4", 30))
    after = int(time.time())
    assert before + 1800 - 1 <= token.expires_at <= after + 1800 + 1


def test_leading_slash_in_resource_key_is_ignored(secret_store: InMemorySecretStore) -> None:
    token = asyncio.run(_issuer(secret_store).issue_resource_token("/videos/a.mp4", 1))
    assert token.resource_url == f"https://{TEST_DOMAIN}/videos/a.mp4"


@pytest.mark.parametrize("expiry", [0, -1, 1.5, True, "30"])
def test_bad_expiry_is_rejected_before_signing(
    secret_store: InMemorySecretStore, expiry
) -> None:
    with pytest.raises(ValueError, match="expiry_minutes"):
        asyncio.run(_issuer(secret_store).issue_resource_token("videos/a.mp4", expiry))
    assert secret_store.calls == 0


def test_key_failure_propagates_as_key_unavailable() -> None:
    with pytest.raises(KeyUnavailable):
        asyncio.run(_issuer(InMemorySecretStore({})).issue_resource_token("videos/a.mp4", 5))


# ---- course passes ----


def test_course_pass_scopes_prefix_with_wildcard_for_24_hours(
    secret_store: InMemorySecretStore, signing_key: rsa.RSAPrivateKey
) -> None:
    course_pass = asyncio.run(_issuer(secret_store).issue_course_pass("courses/c1"))

    assert course_pass.resource == f"https://{TEST_DOMAIN}/courses/c1/*"
    assert course_pass.expires_at == FIXED_EPOCH + 24 * 3600
    assert course_pass.key_id == TEST_KEY_ID

    policy_bytes = _edge_b64decode(course_pass.policy)
    (statement,) = json.loads(policy_bytes)["Statement"]
    assert statement["Resource"] == course_pass.resource
    assert statement["Condition"]["DateLessThan"]["AWS:EpochTime"] == course_pass.expires_at

    signing_key.public_key().verify(
        _edge_b64decode(course_pass.signature),
        policy_bytes,
        padding.PKCS1v15(),
        hashes.SHA1(),
    )


def test_course_pass_cookies(secret_store: InMemorySecretStore) -> None:
    course_pass = asyncio.run(_issuer(secret_store).issue_course_pass("/courses/c1/"))
    assert course_pass.cookies() == {
        "CloudFront-Policy": course_pass.policy,
        "CloudFront-Signature": course_pass.signature,
        "CloudFront-Key-Pair-Id": TEST_KEY_ID,
    }
    assert course_pass.signature not in repr(course_pass)


def test_credentials_use_edge_base64_alphabet(secret_store: InMemorySecretStore) -> None:
    issuer = _issuer(secret_store)
    course_pass = asyncio.run(issuer.issue_course_pass("courses/c1"))
    token = asyncio.run(issuer.issue_resource_token("videos/a.mp4", 5))
    for value in (course_pass.policy, course_pass.signature, token.signature):
        assert not set(value) & {"+", "/", "="}


# ---- configuration ----


@pytest.mark.parametrize(
    ("overrides", "missing"),
    [
        ({"domain": None}, "CLOUDFRONT_DOMAIN"),
        ({"domain": "  "}, "CLOUDFRONT_DOMAIN"),
        ({"key_id": ""}, "CLOUDFRONT_KEY_PAIR_ID"),
        ({"secret_name": ""}, "CLOUDFRONT_PRIVATE_KEY_SECRET_NAME"),
    ],
)
def test_missing_configuration_fails_at_construction(
    secret_store: InMemorySecretStore, overrides: dict, missing: str
) -> None:
    with pytest.raises(ConfigurationError, match=missing):
        _issuer(secret_store, **overrides)
    assert secret_store.calls == 0


def test_domain_scheme_and_trailing_slash_are_normalized(
    secret_store: InMemorySecretStore,
) -> None:
    issuer = _issuer(secret_store, domain=f"https://{TEST_DOMAIN}/")
    assert issuer.domain == TEST_DOMAIN
