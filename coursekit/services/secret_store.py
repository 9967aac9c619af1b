"""Where the media signing key lives.

The CDN private key is a PEM string stored as a secret.  The service only
ever needs one call: get_secret(name) -> str | None.

  SecretsManagerSecretStore  production; AWS Secrets Manager via boto3
  EnvSecretStore             local dev; reads an environment variable
  InMemorySecretStore        tests; also counts calls

boto3 is synchronous.  The Secrets Manager call runs in a worker thread
(asyncio.to_thread) so a slow secret store never blocks the event loop
while other learners' requests are in flight.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
from typing import Protocol, runtime_checkable

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from coursekit.core.errors import KeyUnavailable

logger = logging.getLogger(__name__)


@runtime_checkable
class SecretStore(Protocol):
    async def get_secret(self, name: str) -> str | None:
        """Return the secret's string value, or None if it does not exist."""
        ...


class SecretsManagerSecretStore:
    def __init__(self, region_name: str, *, timeout_seconds: float = 5.0, client=None) -> None:
        if client is None:
            client = boto3.client(
                "secretsmanager",
                region_name=region_name,
                config=Config(
                    connect_timeout=timeout_seconds,
                    read_timeout=timeout_seconds,
                    retries={"max_attempts": 2, "mode": "standard"},
                ),
            )
        self._client = client

    async def get_secret(self, name: str) -> str | None:
        return await asyncio.to_thread(self._get_secret_sync, name)

    def _get_secret_sync(self, name: str) -> str | None:
        try:
            response = self._client.get_secret_value(SecretId=name)
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "")
            if code == "ResourceNotFoundException":
                return None
            logger.warning("Secrets Manager rejected the request: %s", code)
            raise KeyUnavailable(f"secret store error: {code}") from exc
        except BotoCoreError as exc:
            logger.warning("Secrets Manager unreachable: %s", exc.__class__.__name__)
            raise KeyUnavailable("secret store unreachable") from exc
        return response.get("SecretString")


def env_var_for(name: str) -> str:
    """'coursekit/cloudfront-private-key' -> 'COURSEKIT_CLOUDFRONT_PRIVATE_KEY'."""
    return re.sub(r"[^A-Za-z0-9]+", "_", name).strip("_").upper()


class EnvSecretStore:
    async def get_secret(self, name: str) -> str | None:
        value = os.getenv(env_var_for(name))
        if value is None:
            return None
        # Env files usually carry the PEM with literal "\n" sequences.
        return value.replace("\\n", "\n")


class InMemorySecretStore:
    """Dict-backed store for tests.

    ``calls`` counts get_secret invocations so single-flight behaviour can
    be asserted.  ``delay`` makes each call sleep first, which keeps
    concurrent callers overlapping; ``error`` makes every call raise.
    """

    def __init__(
        self,
        secrets: dict[str, str] | None = None,
        *,
        delay: float = 0.0,
        error: Exception | None = None,
    ) -> None:
        self.secrets = dict(secrets or {})
        self.delay = delay
        self.error = error
        self.calls = 0

    async def get_secret(self, name: str) -> str | None:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.secrets.get(name)
