#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Final

from ..exceptions import ConfigError, CredentialsUnavailableError
from ..transport import Transport, TransportRequest
from .cache import IdentityCache, MemoryIdentityCache
from .components import CachedIdentity, IdentityResolver

logger: Final = logging.getLogger(__name__)

_USER_AGENT: Final = "aws-service-core-imds-client"
_CACHE_KEY_PREFIX: Final = "aws_service_core.identity"
_DEFAULT_IDENTITY_NAME: Final = "default"

MIN_TOKEN_TTL: Final = 5
MAX_TOKEN_TTL: Final = 21600


@dataclass(frozen=True, kw_only=True)
class InstanceMetadataConfig:
    """Configuration for reading credentials from an instance metadata endpoint."""

    host: str = "169.254.169.254"
    port: int = 80
    iam_user: str | None = None
    """The role to read credentials for. Discovered from the endpoint when unset."""

    timeout_ms: int = 1000
    token_ttl: int | None = MAX_TOKEN_TTL
    """TTL in seconds requested for IMDSv2 session tokens. None disables IMDSv2."""

    expiry_buffer: int = 300
    """Seconds before expiration at which cached credentials stop being served."""

    def __post_init__(self) -> None:
        if self.token_ttl is not None and not (
            MIN_TOKEN_TTL <= self.token_ttl <= MAX_TOKEN_TTL
        ):
            raise ConfigError(
                f"Token TTL must be between {MIN_TOKEN_TTL} and {MAX_TOKEN_TTL} "
                "seconds."
            )
        if not self.host:
            raise ConfigError("Instance metadata host must not be empty.")


class InstanceMetadataCredentialsResolver(IdentityResolver):
    """Resolves temporary credentials from an EC2-style instance metadata endpoint.

    Fetched identities are stored in the identity cache until shortly before they
    expire. Concurrent callers that all miss the cache will each fetch; the cache
    keeps whichever write lands last.
    """

    _TOKEN_PATH = "/latest/api/token"  # noqa: S105
    _METADATA_PATH_BASE = "/latest/meta-data/iam/security-credentials/"

    def __init__(
        self,
        transport: Transport,
        config: InstanceMetadataConfig | None = None,
        cache: IdentityCache | None = None,
    ):
        self._transport = transport
        self._config = config or InstanceMetadataConfig()
        self._cache = cache if cache is not None else MemoryIdentityCache()

    @property
    def cache_key(self) -> str:
        return f"{_CACHE_KEY_PREFIX}/{self._config.iam_user or _DEFAULT_IDENTITY_NAME}"

    async def get_identity(self) -> CachedIdentity:
        cached = self._read_cache()
        if cached is not None:
            return cached

        token = await self._fetch_token()
        iam_user = self._config.iam_user or await self._discover_iam_user(token)
        body = await self._get(f"{self._METADATA_PATH_BASE}{iam_user}", token)
        identity = self._parse_credentials(iam_user, body)
        self._write_cache(identity)
        return identity

    def _read_cache(self) -> CachedIdentity | None:
        value = self._cache.get(self.cache_key)
        if value is None:
            return None
        try:
            identity = CachedIdentity.from_json(value)
        except (ValueError, KeyError) as e:
            logger.warning("Ignoring malformed cached identity: %s", e)
            return None
        if identity.is_expired:
            logger.debug("Cached identity for %s has expired.", identity.identity_name)
            return None
        logger.debug("Using cached identity for %s.", identity.identity_name)
        return identity

    def _write_cache(self, identity: CachedIdentity) -> None:
        if identity.expiration is None:
            # Long-term credentials are kept for as long as a session token lives.
            ttl = float(MAX_TOKEN_TTL)
        else:
            remaining = (identity.expiration - datetime.now(UTC)).total_seconds()
            ttl = max(remaining - self._config.expiry_buffer, 1.0)
        self._cache.set(self.cache_key, identity.to_json(), ttl)
        logger.debug(
            "Cached identity for %s for %.0f seconds.", identity.identity_name, ttl
        )

    def _request(
        self, method: str, path: str, headers: dict[str, str]
    ) -> TransportRequest:
        headers = {"User-Agent": _USER_AGENT, **headers}
        return TransportRequest(
            scheme="http",
            host=self._config.host,
            port=self._config.port,
            path=path,
            method=method,
            headers=headers,
            timeout_ms=self._config.timeout_ms,
        )

    async def _fetch_token(self) -> str | None:
        if self._config.token_ttl is None:
            return None
        request = self._request(
            "PUT",
            self._TOKEN_PATH,
            {"X-aws-ec2-metadata-token-ttl-seconds": str(self._config.token_ttl)},
        )
        result = await self._transport.execute(request)
        if not result.ok or result.status != 200 or not result.body:
            logger.debug(
                "Unable to fetch a metadata session token (status=%s, reason=%s). "
                "Falling back to token-less requests.",
                result.status,
                result.reason,
            )
            return None
        return result.body.decode("utf-8").strip()

    async def _get(self, path: str, token: str | None) -> str:
        headers = {} if token is None else {"X-aws-ec2-metadata-token": token}
        result = await self._transport.execute(self._request("GET", path, headers))
        if not result.ok:
            raise CredentialsUnavailableError(
                f"Unable to reach instance metadata at {self._config.host}: "
                f"{result.reason}"
            )
        body = (result.body or b"").decode("utf-8")
        if result.status != 200:
            raise CredentialsUnavailableError(
                f"Instance metadata returned {result.status} for {path}: {body}"
            )
        return body

    async def _discover_iam_user(self, token: str | None) -> str:
        body = await self._get(self._METADATA_PATH_BASE, token)
        names = body.split()
        if not names:
            raise CredentialsUnavailableError(
                "No IAM role is attached to this instance."
            )
        logger.debug("Discovered IAM role %s.", names[0])
        return names[0]

    def _parse_credentials(self, iam_user: str, body: str) -> CachedIdentity:
        try:
            document = json.loads(body)
        except ValueError as e:
            raise CredentialsUnavailableError(
                f"Unable to parse credentials for {iam_user}."
            ) from e
        if not isinstance(document, dict):
            raise CredentialsUnavailableError(
                f"Unexpected credentials document for {iam_user}."
            )

        code = document.get("Code", "Success")
        if code != "Success":
            raise CredentialsUnavailableError(
                f"Instance metadata returned code {code} for {iam_user}."
            )
        if not document.get("AccessKeyId") or not document.get("SecretAccessKey"):
            raise CredentialsUnavailableError(
                "AccessKeyId and SecretAccessKey are required"
            )
        try:
            return CachedIdentity.from_document(iam_user, document)
        except ValueError as e:
            raise CredentialsUnavailableError(
                f"Invalid timestamps in credentials for {iam_user}."
            ) from e
