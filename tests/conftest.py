from __future__ import annotations

import asyncio
import sys
from dataclasses import replace
from pathlib import Path

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi.testclient import TestClient

# Ensure repo root is on sys.path so `import coursekit` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from coursekit.container import Container, build_container, seed_sample_catalog  # noqa: E402
from coursekit.core.config import SETTINGS, Settings  # noqa: E402
from coursekit.main import app  # noqa: E402
from coursekit.models.enrollment import Enrollment  # noqa: E402
from coursekit.repos.enrollment_repo import EnrollmentRepo  # noqa: E402
from coursekit.repos.kv_store import InMemoryKeyValueStore  # noqa: E402
from coursekit.services import token_service  # noqa: E402
from coursekit.services.secret_store import InMemorySecretStore  # noqa: E402

TEST_DOMAIN = "d111111abcdef8.cloudfront.net"
TEST_KEY_ID = "K2JCJMDEHXQW5F"
TEST_SECRET_NAME = "coursekit/cloudfront-private-key"

FREE_COURSE = "spec-driven-dev-mini"  # 3 lessons
PAID_COURSE = "spec-driven-dev-premium"  # 5 lessons


def pem_of(key: rsa.RSAPrivateKey) -> str:
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


def media_settings(**overrides) -> Settings:
    """Test settings with media signing configured."""
    values = {
        "app_env": "test",
        "redis_url": None,
        "cdn_domain": TEST_DOMAIN,
        "key_pair_id": TEST_KEY_ID,
        "private_key_secret_name": TEST_SECRET_NAME,
        "video_url_expiry_minutes": 30,
    }
    values.update(overrides)
    return replace(SETTINGS, **values)


@pytest.fixture(scope="session")
def signing_key() -> rsa.RSAPrivateKey:
    """One RSA key for the whole run; generating one per test is slow."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def signing_key_pem(signing_key: rsa.RSAPrivateKey) -> str:
    return pem_of(signing_key)


@pytest.fixture
def secret_store(signing_key_pem: str) -> InMemorySecretStore:
    return InMemorySecretStore({TEST_SECRET_NAME: signing_key_pem})


@pytest.fixture(autouse=True)
def container(secret_store: InMemorySecretStore) -> Container:
    """Fresh container per test: empty in-memory store plus the sample catalogue."""
    c = build_container(
        media_settings(),
        store=InMemoryKeyValueStore(),
        secret_store=secret_store,
    )
    asyncio.run(seed_sample_catalog(c.catalog))
    app.state.container = c
    return c


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def mint_token(
    username: str = "test-learner",
    roles: list[str] | None = None,
) -> str:
    """Create a valid ES256 JWT for testing."""
    return token_service.create_access_token(sub=username, roles=roles)


@pytest.fixture
def token() -> str:
    return mint_token()


@pytest.fixture
def admin_token() -> str:
    return mint_token(username="test-admin", roles=["admin"])


def auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def enroll_directly(
    container: Container,
    learner_id: str,
    course_id: str,
    payment_status: str = "completed",
    enrollment_type: str = "paid",
) -> None:
    """Write an enrollment straight into the store, bypassing the pricing rules."""
    enrollment = Enrollment(
        learner_id=learner_id,
        course_id=course_id,
        enrollment_type=enrollment_type,  # type: ignore[arg-type]
        payment_status=payment_status,  # type: ignore[arg-type]
        enrolled_at="2025-01-15T10:00:00.000Z",
    )
    asyncio.run(EnrollmentRepo(container.store).create(enrollment))
