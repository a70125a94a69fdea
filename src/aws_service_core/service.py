#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import logging
from collections.abc import Mapping
from types import TracebackType
from typing import Any, Final, Self

from .builder import AMZ_JSON_1_1, ActionRequest, RequestBuilder
from .config import ServiceConfig
from .exceptions import ConfigError
from .identity import (
    CredentialSource,
    IdentityResolver,
    InstanceMetadataConfig,
    InstanceMetadataCredentialsResolver,
    ResolvedCredentials,
)
from .signing import RequestSigner, SigV4RequestSigner
from .transport import (
    DEFAULT_PORTS,
    DEFAULT_TIMEOUT_MS,
    ActionResult,
    AIOHTTPTransport,
    Transport,
    TransportRequest,
)

logger: Final = logging.getLogger(__name__)


def merge_headers(
    defaults: Mapping[str, str], overrides: Mapping[str, str] | None
) -> dict[str, str]:
    """Merge ``overrides`` into ``defaults``.

    Header names are compared case-insensitively. An override replaces any default
    with the same name and keeps its own spelling.
    """
    merged = dict(defaults)
    for name, value in (overrides or {}).items():
        for existing in [key for key in merged if key.lower() == name.lower()]:
            del merged[existing]
        merged[name] = value
    return merged


class AwsService:
    """Base class for clients of AWS services that use Signature Version 4.

    Concrete services extend this class and call :py:meth:`perform_action`. Service
    specific quirks are applied by overriding :py:meth:`shape_request`.
    """

    def __init__(
        self,
        config: ServiceConfig | None,
        *,
        transport: Transport | None = None,
        signer: RequestSigner | None = None,
        credentials_resolver: IdentityResolver | None = None,
    ) -> None:
        """
        :param config: The configuration for this client.
        :param transport: The transport used to send requests. A new
            :py:class:`AIOHTTPTransport` is created and owned by this client if not
            provided.
        :param signer: The signer used to compute authorization headers.
        :param credentials_resolver: A dynamic identity resolver to use instead of
            reading credentials from instance metadata.
        """
        if config is None:
            raise ConfigError(
                "Could not initialize. Missing init object. Please configure the "
                "AWS Service properly."
            )
        self._config = config
        self._owns_transport = transport is None
        self._transport = transport if transport is not None else AIOHTTPTransport()
        self._signer = signer or SigV4RequestSigner()
        self._builder = RequestBuilder()
        self._credential_source = CredentialSource(
            access_key_id=config.access_key_id,
            secret_access_key=config.secret_access_key,
            resolver=self._create_resolver(credentials_resolver),
        )

    def _create_resolver(
        self, credentials_resolver: IdentityResolver | None
    ) -> IdentityResolver | None:
        config = self._config
        if config.has_static_credentials:
            return None
        if credentials_resolver is not None:
            return credentials_resolver
        if not config.has_identity_source:
            return None

        logger.debug(
            "Initializing instance metadata credentials as aws_access_key_id and "
            "aws_secret_access_key were not provided."
        )
        metadata_config = InstanceMetadataConfig(
            host=config.security_credentials_host or InstanceMetadataConfig.host,
            port=config.security_credentials_port,
            iam_user=config.iam_user,
        )
        return InstanceMetadataCredentialsResolver(
            transport=self._transport,
            config=metadata_config,
            cache=config.identity_cache,
        )

    @property
    def config(self) -> ServiceConfig:
        return self._config

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def credential_source(self) -> CredentialSource:
        return self._credential_source

    @property
    def host(self) -> str:
        if self._config.endpoint_host:
            return self._config.endpoint_host
        return f"{self._config.service}.{self._config.region}.amazonaws.com"

    @property
    def target_prefix(self) -> str:
        return self._config.target_prefix or self._config.service

    async def get_credentials(self) -> ResolvedCredentials:
        """Resolve the credentials the next request will be signed with."""
        return await self._credential_source.resolve()

    def shape_request(self, request: TransportRequest) -> TransportRequest:
        """Hook to modify the assembled request right before it is sent.

        Returns the request unchanged by default. Overrides must not touch anything
        covered by the signature.
        """
        return request

    async def perform_action(
        self,
        action: str,
        params: Mapping[str, Any] | None = None,
        *,
        path: str = "/",
        method: str = "GET",
        use_tls: bool = False,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        content_type: str = AMZ_JSON_1_1,
        extra_headers: Mapping[str, str] | None = None,
    ) -> ActionResult:
        """Call an action of the service.

        :param action: The name of the action, e.g. ``GenerateDataKey``.
        :param params: The parameters of the action.
        :param path: The request path.
        :param method: The HTTP method.
        :param use_tls: Whether to call the service over HTTPS.
        :param timeout_ms: The timeout for the whole call in milliseconds.
        :param content_type: How the parameters are delivered. Either
            ``application/x-amz-json-1.1`` or ``application/x-www-form-urlencoded``.
        :param extra_headers: Headers to add to the request. They override the
            default headers.
        :returns: The transport result, unchanged.
        """
        request = ActionRequest(
            action=action,
            params=params or {},
            path=path,
            method=method,
            content_type=content_type,
            use_tls=use_tls,
            timeout_ms=timeout_ms,
            extra_headers=extra_headers,
        )
        transport_request = await self.build_request(request)

        if self._config.debug:
            logger.debug(
                "Calling AWS: %s %s. Body=%r",
                transport_request.method,
                transport_request.url,
                transport_request.body,
            )
            logger.debug("Calling AWS: Headers: %s", _redact(transport_request.headers))

        result = await self._transport.execute(transport_request)

        if self._config.debug:
            logger.debug(
                "AWS Response: ok=%s, code=%s, headers=%s, status=%s, body=%r",
                result.ok,
                result.status,
                dict(result.headers),
                result.reason,
                result.body,
            )
        return result

    async def build_request(self, request: ActionRequest) -> TransportRequest:
        """Resolve credentials, sign, and assemble the request to send."""
        credentials = await self._credential_source.resolve()
        serialized = self._builder.serialize(request)
        host = self.host

        signature = self._signer.sign(
            method=request.method,
            host=host,
            path=request.path,
            params=serialized.signing_params,
            body=serialized.body,
            credentials=credentials,
            region=self._config.region,
            service=self._config.service,
        )

        headers = {
            "Authorization": signature.authorization,
            "X-Amz-Date": signature.timestamp,
            "Accept": "application/json",
            "Content-Type": request.content_type,
            "X-Amz-Target": f"{self.target_prefix}.{request.action}",
        }
        if credentials.session_token:
            headers["X-Amz-Security-Token"] = credentials.session_token
        headers = merge_headers(headers, request.extra_headers)

        # The query string is attached only now, after the signature was computed
        # over the bare path.
        path = self._builder.finalize_path(
            request.method, request.path, serialized.query_string
        )
        scheme = "https" if request.use_tls else "http"
        transport_request = TransportRequest(
            scheme=scheme,
            host=host,
            port=DEFAULT_PORTS[scheme],
            path=path,
            method=request.method,
            body=serialized.body,
            headers=headers,
            timeout_ms=request.timeout_ms,
            keepalive_ms=self._config.conn_keepalive_ms,
            pool_size=self._config.conn_pool_size,
        )
        return self.shape_request(transport_request)

    async def aclose(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_transport:
            await self._transport.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.aclose()


_REDACTED_HEADERS: Final = frozenset({"authorization", "x-amz-security-token"})


def _redact(headers: Mapping[str, str]) -> dict[str, str]:
    return {
        name: "<redacted>" if name.lower() in _REDACTED_HEADERS else value
        for name, value in headers.items()
    }
