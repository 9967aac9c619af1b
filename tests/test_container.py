"""Container wiring: media delivery is on only when signing is configured."""

from __future__ import annotations

from dataclasses import fields

import pytest

from coursekit.container import Container, build_container
from coursekit.core.errors import MediaDeliveryDisabled
from coursekit.repos.kv_store import InMemoryKeyValueStore
from coursekit.services.secret_store import InMemorySecretStore
from tests.conftest import TEST_KEY_ID, media_settings


def test_media_wiring_when_signing_configured(container: Container) -> None:
    assert container.media_enabled is True
    assert container.key_cache is not None
    assert container.key_cache.key_id == TEST_KEY_ID


def test_media_disabled_without_signing_settings(secret_store: InMemorySecretStore) -> None:
    bare = build_container(
        media_settings(cdn_domain=None, key_pair_id=None, private_key_secret_name=None),
        store=InMemoryKeyValueStore(),
        secret_store=secret_store,
    )
    assert bare.media_enabled is False
    assert bare.key_cache is None
    with pytest.raises(MediaDeliveryDisabled):
        bare.media


def test_container_holds_only_wired_collaborators() -> None:
    names = {f.name for f in fields(Container)}
    assert "issuer" not in names
    assert {"key_cache", "_media"} <= names
