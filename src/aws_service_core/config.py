#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Self
from urllib.parse import urlparse

from .exceptions import ConfigError
from .identity.cache import IdentityCache
from .transport import DEFAULT_KEEPALIVE_MS, DEFAULT_POOL_SIZE

_ENV_REGION = ("AWS_REGION", "AWS_DEFAULT_REGION")
_ENV_ACCESS_KEY_ID = "AWS_ACCESS_KEY_ID"
_ENV_SECRET_ACCESS_KEY = "AWS_SECRET_ACCESS_KEY"  # noqa: S105
_ENV_METADATA_ENDPOINT = "AWS_EC2_METADATA_SERVICE_ENDPOINT"


@dataclass(frozen=True, kw_only=True)
class ServiceConfig:
    """Configuration for a single AWS service client.

    Instances are validated on construction and never change afterward.
    """

    region: str
    """The AWS region to send requests to, e.g. ``us-east-1``."""

    service: str
    """The signing name of the service, e.g. ``kms``."""

    access_key_id: str | None = None
    secret_access_key: str | None = field(default=None, repr=False)

    iam_user: str | None = None
    """The IAM role to read credentials for when no static keys are configured.

    When unset, the role attached to the instance is discovered.
    """

    security_credentials_host: str | None = None
    """The metadata endpoint host used to discover credentials."""

    security_credentials_port: int = 80
    """The port used when connecting to ``security_credentials_host``."""

    use_instance_metadata: bool = False
    """Whether to read credentials from the default instance metadata endpoint when
    neither ``iam_user`` nor ``security_credentials_host`` is set."""

    identity_cache: IdentityCache | None = field(default=None, compare=False)
    """A cache shared between clients to store discovered credentials."""

    debug: bool = False
    """Whether to log every request and response at DEBUG level."""

    conn_keepalive_ms: int = DEFAULT_KEEPALIVE_MS
    """How long a pooled connection may stay idle before it's closed."""

    conn_pool_size: int = DEFAULT_POOL_SIZE
    """The maximum number of connections in the pool."""

    target_prefix: str | None = None
    """The prefix of the ``X-Amz-Target`` header. Defaults to ``service``."""

    endpoint_host: str | None = None
    """Overrides the default ``<service>.<region>.amazonaws.com`` host."""

    def __post_init__(self) -> None:
        if not self.service:
            raise ConfigError("aws_service is missing. Please provide one.")
        if not self.region:
            raise ConfigError("aws_region is missing. Please provide one.")
        if self.conn_keepalive_ms <= 0:
            raise ConfigError("conn_keepalive_ms must be positive.")
        if self.conn_pool_size <= 0:
            raise ConfigError("conn_pool_size must be positive.")

    @property
    def has_static_credentials(self) -> bool:
        return bool(self.access_key_id) and bool(self.secret_access_key)

    @property
    def has_identity_source(self) -> bool:
        """Whether a dynamic identity source was configured."""
        return (
            self.use_instance_metadata
            or bool(self.iam_user)
            or bool(self.security_credentials_host)
        )

    @classmethod
    def from_environment(
        cls,
        service: str,
        *,
        environ: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> Self:
        """Build a config from the standard AWS environment variables.

        Explicit ``overrides`` take precedence over the environment.

        :param service: The signing name of the service.
        :param environ: The environment to read from. Defaults to ``os.environ``.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {"service": service}

        region = next((env[name] for name in _ENV_REGION if env.get(name)), None)
        if region is not None:
            values["region"] = region
        if access_key_id := env.get(_ENV_ACCESS_KEY_ID):
            values["access_key_id"] = access_key_id
        if secret_access_key := env.get(_ENV_SECRET_ACCESS_KEY):
            values["secret_access_key"] = secret_access_key
        if endpoint := env.get(_ENV_METADATA_ENDPOINT):
            parsed = urlparse(endpoint)
            if not parsed.hostname:
                raise ConfigError(
                    f"Invalid {_ENV_METADATA_ENDPOINT} value: {endpoint!r}"
                )
            values["security_credentials_host"] = parsed.hostname
            if parsed.port is not None:
                values["security_credentials_port"] = parsed.port

        values.update(overrides)
        values.setdefault("region", "")
        return cls(**values)
