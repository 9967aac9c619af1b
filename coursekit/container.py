"""Dependency-injection root.

build_container() wires every service once per process.  Route handlers
reach it through request.app.state.container (see api/dependencies.py);
tests build a fresh one per test with an in-memory store and secret store.

The SigningKeyCache lives here and only here.  One container, one cache,
one secret fetch per process.

MEDIA DELIVERY
---------------
Signing needs three settings (CDN domain, key pair id, secret name).
  prod:      any missing value raises ConfigurationError and the process
             does not start.
  dev/test:  the service starts without media; the two video endpoints
             answer 503 and everything else works.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from coursekit.core.clock import Clock, utcnow
from coursekit.core.config import SETTINGS, Settings
from coursekit.core.errors import MediaDeliveryDisabled
from coursekit.db.redis import redis_pool
from coursekit.models.course import Course, Lesson
from coursekit.repos.catalog_repo import CatalogRepo
from coursekit.repos.enrollment_repo import EnrollmentRepo
from coursekit.repos.kv_store import InMemoryKeyValueStore, KeyValueStore, RedisKeyValueStore
from coursekit.repos.progress_repo import ProgressRepo
from coursekit.repos.signup_repo import MeetupSignupRepo
from coursekit.services.credential_issuer import CredentialIssuer
from coursekit.services.enrollment_gate import EnrollmentGate
from coursekit.services.enrollment_service import EnrollmentService
from coursekit.services.media_access import MediaAccess
from coursekit.services.meetups import MeetupService
from coursekit.services.progress_store import ProgressStore
from coursekit.services.secret_store import (
    EnvSecretStore,
    SecretsManagerSecretStore,
    SecretStore,
)
from coursekit.services.signing_key_cache import SigningKeyCache

logger = logging.getLogger(__name__)


@dataclass
class Container:
    settings: Settings
    store: KeyValueStore
    catalog: CatalogRepo
    enrollment_service: EnrollmentService
    enrollment_gate: EnrollmentGate
    progress: ProgressStore
    meetups: MeetupService
    clock: Clock = utcnow
    key_cache: SigningKeyCache | None = None
    _media: MediaAccess | None = None

    @property
    def media_enabled(self) -> bool:
        return self._media is not None

    @property
    def media(self) -> MediaAccess:
        if self._media is None:
            raise MediaDeliveryDisabled()
        return self._media


def _secret_store_for(settings: Settings) -> SecretStore:
    if settings.secret_store == "env":
        return EnvSecretStore()
    return SecretsManagerSecretStore(
        settings.aws_region, timeout_seconds=settings.secret_store_timeout_seconds
    )


def build_container(
    settings: Settings = SETTINGS,
    *,
    store: KeyValueStore | None = None,
    secret_store: SecretStore | None = None,
    clock: Clock = utcnow,
) -> Container:
    if store is None:
        if redis_pool is not None:
            store = RedisKeyValueStore(redis_pool)
        else:
            store = InMemoryKeyValueStore()

    timeout = settings.store_timeout_seconds
    catalog = CatalogRepo(store)
    enrollments = EnrollmentRepo(store)
    gate = EnrollmentGate(enrollments, timeout_seconds=timeout)

    container = Container(
        settings=settings,
        store=store,
        catalog=catalog,
        enrollment_service=EnrollmentService(
            enrollments, catalog, timeout_seconds=timeout, clock=clock
        ),
        enrollment_gate=gate,
        progress=ProgressStore(ProgressRepo(store), catalog, timeout_seconds=timeout, clock=clock),
        meetups=MeetupService(MeetupSignupRepo(store), timeout_seconds=timeout, clock=clock),
        clock=clock,
    )

    if not settings.media_configured and not settings.is_prod:
        logger.warning("Media signing not configured; video endpoints will answer 503")
        return container

    key_cache = SigningKeyCache(
        secret_store or _secret_store_for(settings),
        secret_name=settings.private_key_secret_name or "",
        key_id=settings.key_pair_id or "",
        timeout_seconds=settings.secret_store_timeout_seconds,
    )
    # Raises ConfigurationError when a signing setting is missing.
    issuer = CredentialIssuer(key_cache, domain=settings.cdn_domain, clock=clock)

    container.key_cache = key_cache
    container._media = MediaAccess(
        gate,
        issuer,
        catalog,
        video_url_expiry_minutes=settings.video_url_expiry_minutes,
        timeout_seconds=timeout,
    )
    logger.info("Media delivery enabled (domain=%s key_id=%s)", issuer.domain, key_cache.key_id)
    return container


# ---------------------------------------------------------------------------
# Sample catalogue for local development with the in-memory store
# ---------------------------------------------------------------------------

SAMPLE_COURSES = (
    Course(
        id="spec-driven-dev-mini",
        name="Spec-Driven Development with Context Engineering",
        pricing_model="free",
    ),
    Course(
        id="spec-driven-dev-premium",
        name="Advanced Spec-Driven Development Mastery",
        pricing_model="paid",
    ),
)

_SAMPLE_LESSON_TITLES = {
    "spec-driven-dev-mini": (
        "Vibe Coding vs. Spec-Driven Development",
        "Prompt Engineering vs. Context Engineering",
        "Spec-Driven Development with Context Engineering",
    ),
    "spec-driven-dev-premium": (
        "Writing Specs That Survive Contact",
        "Context Windows as a Design Constraint",
        "Decomposing Features into Specs",
        "Reviewing AI-Written Code Against a Spec",
        "Capstone: Shipping a Feature End to End",
    ),
}


async def seed_sample_catalog(catalog: CatalogRepo) -> None:
    for course in SAMPLE_COURSES:
        await catalog.add_course(course)
        for order, title in enumerate(_SAMPLE_LESSON_TITLES[course.id], start=1):
            await catalog.add_lesson(
                Lesson(
                    id=f"lesson-{order}",
                    course_id=course.id,
                    title=title,
                    order=order,
                    video_key=f"courses/{course.id}/lesson-{order}.mp4",
                    length_in_mins=15,
                )
            )
