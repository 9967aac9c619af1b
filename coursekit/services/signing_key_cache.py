"""Process-lifetime cache for the media signing key.

SINGLE-FLIGHT
--------------
On a cold start, a burst of video requests all find the cache empty at
once.  Without coordination each would call the secret store: N requests,
N identical fetches, and N chances to hit the secret store's rate limit.

The first caller starts one asyncio.Task for the fetch and stores it in
_inflight.  Every caller that arrives while it runs awaits that same task,
so exactly one secret-store call happens and everyone gets the same key.

  asyncio.shield():  a caller whose request is cancelled (client hung up)
    stops waiting, but the shared fetch keeps running for the others.

  Failures are not cached.  _inflight is cleared when the task finishes,
    success or not, and _material is only set on success, so the next
    call after a failure starts a fresh fetch.

No lock is needed: between checking _inflight and assigning it there is
no await, so no other coroutine can run in between.
"""

from __future__ import annotations

import asyncio
import logging

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from coursekit.core.errors import KeyUnavailable
from coursekit.core.metrics import SIGNING_KEY_FETCHES
from coursekit.models.credential import SigningKeyMaterial
from coursekit.services.secret_store import SecretStore

logger = logging.getLogger(__name__)


def parse_private_key(pem: str) -> rsa.RSAPrivateKey:
    """Parse a PEM RSA private key or raise KeyUnavailable.

    The exception message never includes the PEM text.
    """
    try:
        key = serialization.load_pem_private_key(pem.encode(), password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm):
        raise KeyUnavailable("signing key secret is not a PEM private key") from None
    if not isinstance(key, rsa.RSAPrivateKey):
        raise KeyUnavailable("signing key secret is not an RSA key")
    return key


class SigningKeyCache:
    def __init__(
        self,
        secret_store: SecretStore,
        *,
        secret_name: str,
        key_id: str,
        timeout_seconds: float = 5.0,
    ) -> None:
        self._secret_store = secret_store
        self._secret_name = secret_name
        self._key_id = key_id
        self._timeout_seconds = timeout_seconds
        self._material: SigningKeyMaterial | None = None
        self._inflight: asyncio.Task[SigningKeyMaterial] | None = None

    @property
    def key_id(self) -> str:
        return self._key_id

    @property
    def secret_name(self) -> str:
        return self._secret_name

    @property
    def is_loaded(self) -> bool:
        return self._material is not None

    async def get_key(self) -> SigningKeyMaterial:
        if self._material is not None:
            return self._material
        if self._inflight is None:
            self._inflight = asyncio.create_task(self._fetch_once())
        return await asyncio.shield(self._inflight)

    async def _fetch_once(self) -> SigningKeyMaterial:
        try:
            material = await self._fetch()
        except KeyUnavailable as exc:
            SIGNING_KEY_FETCHES.labels(result="failure").inc()
            logger.warning("Signing key fetch failed: %s", exc)
            raise
        finally:
            self._inflight = None

        self._material = material
        SIGNING_KEY_FETCHES.labels(result="success").inc()
        logger.info("Signing key loaded (key_id=%s)", material.key_id)
        return material

    async def _fetch(self) -> SigningKeyMaterial:
        try:
            async with asyncio.timeout(self._timeout_seconds):
                pem = await self._secret_store.get_secret(self._secret_name)
        except TimeoutError:
            raise KeyUnavailable(
                f"secret store did not answer within {self._timeout_seconds}s"
            ) from None
        except OSError as exc:
            raise KeyUnavailable("secret store unreachable") from exc
        except KeyUnavailable:
            raise
        except Exception as exc:
            # Any other failure of a SecretStore implementation counts as unavailable.
            raise KeyUnavailable(f"secret store error: {exc.__class__.__name__}") from exc

        if not pem or not pem.strip():
            raise KeyUnavailable(f"secret {self._secret_name!r} is empty or missing")

        return SigningKeyMaterial(key_id=self._key_id, private_key=parse_private_key(pem))
