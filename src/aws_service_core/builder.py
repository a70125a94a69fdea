#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Final, TypeAlias

from .transport import DEFAULT_TIMEOUT_MS

AMZ_JSON_1_0: Final = "application/x-amz-json-1.0"
AMZ_JSON_1_1: Final = "application/x-amz-json-1.1"
FORM_URLENCODED: Final = "application/x-www-form-urlencoded"

STRUCTURED_CONTENT_TYPES: Final = frozenset({AMZ_JSON_1_0, AMZ_JSON_1_1})

Params: TypeAlias = Mapping[str, Any]


@dataclass(frozen=True, kw_only=True)
class ActionRequest:
    """A logical description of one call to a service action."""

    action: str
    params: Params = field(default_factory=dict)
    path: str = "/"
    method: str = "GET"
    content_type: str = AMZ_JSON_1_1
    use_tls: bool = False
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    extra_headers: Mapping[str, str] | None = None

    def __post_init__(self) -> None:
        # Detach from the caller's mapping so later changes on either side
        # can't leak into the request.
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))
        object.__setattr__(self, "method", self.method.upper())


@dataclass(frozen=True, kw_only=True)
class SerializedRequest:
    query_string: str
    """``Action=<action>`` followed by every parameter."""

    body: bytes = field(repr=False)
    """The payload to send, as determined by the content type."""

    signing_params: Mapping[str, str]
    """The query parameters covered by the signature."""


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def escape_value(value: Any) -> str:
    """Escape a parameter value for the query string.

    Only ``&`` is escaped. Every other character is passed through as-is.
    """
    return _stringify(value).replace("&", "%26")


class RequestBuilder:
    """Turns an action and its parameters into a query string and a body."""

    def build_query_string(self, action: str, params: Params) -> str:
        parts = [f"Action={action}"]
        parts.extend(f"{key}={escape_value(value)}" for key, value in params.items())
        return "&".join(parts)

    def serialize(self, request: ActionRequest) -> SerializedRequest:
        query_string = self.build_query_string(request.action, request.params)

        if request.content_type in STRUCTURED_CONTENT_TYPES:
            document = {**request.params, "Action": request.action}
            body = json.dumps(document, separators=(",", ":")).encode("utf-8")
        elif request.content_type == FORM_URLENCODED:
            body = query_string.encode("utf-8")
        else:
            body = b""

        return SerializedRequest(
            query_string=query_string,
            body=body,
            signing_params=self.signing_params(request),
        )

    def signing_params(self, request: ActionRequest) -> Mapping[str, str]:
        """The parameters to sign as the canonical query.

        Only GET requests carry their parameters in the query. Every other method
        is signed over its body with an empty query.
        """
        if request.method != "GET":
            return {}
        params = {key: _stringify(value) for key, value in request.params.items()}
        params["Action"] = request.action
        return params

    def finalize_path(self, method: str, path: str, query_string: str) -> str:
        """Attach the query string to the path of a GET request.

        This must run after the request was signed: the signature covers the path
        without a query string.
        """
        if method.upper() == "GET":
            return f"{path}?{query_string}"
        return path
