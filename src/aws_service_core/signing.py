#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol

from botocore.auth import SigV4Auth
from botocore.awsrequest import AWSRequest
from botocore.credentials import Credentials

from .identity import ResolvedCredentials


@dataclass(frozen=True, kw_only=True)
class SigningResult:
    authorization: str
    """The value of the ``Authorization`` header."""

    timestamp: str
    """The signing time in ``YYYYMMDD'T'HHMMSS'Z'`` form, sent as ``X-Amz-Date``."""


class RequestSigner(Protocol):
    """Computes the authorization header for a request.

    Implementations must be deterministic for a fixed clock and must not modify
    any of their arguments.
    """

    def sign(
        self,
        *,
        method: str,
        host: str,
        path: str,
        params: Mapping[str, str],
        body: bytes,
        credentials: ResolvedCredentials,
        region: str,
        service: str,
    ) -> SigningResult:
        """Sign a request.

        :param method: The HTTP method.
        :param host: The host the request is sent to.
        :param path: The request path, without any query string.
        :param params: The query parameters to sign. Empty for non-GET requests.
        :param body: The exact payload that will be sent.
        :param credentials: The credentials to sign with.
        :param region: The signing region.
        :param service: The signing name of the service.
        """
        ...


class SigV4RequestSigner(RequestSigner):
    """Signs requests with AWS Signature Version 4 using botocore."""

    def sign(
        self,
        *,
        method: str,
        host: str,
        path: str,
        params: Mapping[str, str],
        body: bytes,
        credentials: ResolvedCredentials,
        region: str,
        service: str,
    ) -> SigningResult:
        request = AWSRequest(
            method=method,
            url=f"https://{host}{path}",
            params=dict(params),
            data=body,
        )
        auth = SigV4Auth(
            Credentials(
                access_key=credentials.access_key_id,
                secret_key=credentials.secret_access_key,
                token=credentials.session_token,
            ),
            service,
            region,
        )
        auth.add_auth(request)
        return SigningResult(
            authorization=request.headers["Authorization"],
            timestamp=request.headers["X-Amz-Date"],
        )
