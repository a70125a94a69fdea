#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import json
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Protocol, Self


def _parse_timestamp(value: Any) -> datetime | None:
    if not value:
        return None
    if not isinstance(value, str):
        raise ValueError(f"Expected an ISO 8601 timestamp, got {value!r}.")
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def _format_timestamp(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass(frozen=True, kw_only=True)
class ResolvedCredentials:
    """The credentials used to sign a single request."""

    access_key_id: str
    """A unique identifier for an AWS user or role."""

    secret_access_key: str
    """A secret key used in conjunction with the access key ID to sign requests."""

    session_token: str | None = None
    """A temporary token used to specify the current session for the supplied
    credentials."""

    issued_at: datetime | None = None
    """When the credentials were issued, if known."""

    expiration: datetime | None = None
    """The expiration time of the credentials. The value must always be in UTC."""

    @classmethod
    def empty(cls) -> Self:
        return cls(access_key_id="", secret_access_key="")

    @property
    def is_empty(self) -> bool:
        return not self.access_key_id or not self.secret_access_key


@dataclass(frozen=True, kw_only=True)
class CachedIdentity:
    """A temporary identity fetched from a metadata endpoint.

    Instances are owned by the identity cache. Service clients only read them through
    a resolver and never hold on to them past a single call.
    """

    identity_name: str
    """The name of the IAM role this identity belongs to."""

    access_key_id: str
    secret_access_key: str
    session_token: str | None = None
    issued_at: datetime | None = None
    expiration: datetime | None = None

    @property
    def is_expired(self) -> bool:
        """Whether the identity is expired.

        Identities without an expiration never expire.
        """
        if self.expiration is None:
            return False
        return datetime.now(UTC) >= self.expiration

    def to_credentials(self) -> ResolvedCredentials:
        return ResolvedCredentials(
            access_key_id=self.access_key_id,
            secret_access_key=self.secret_access_key,
            session_token=self.session_token,
            issued_at=self.issued_at,
            expiration=self.expiration,
        )

    def to_json(self) -> str:
        return json.dumps(
            {
                "IdentityName": self.identity_name,
                "AccessKeyId": self.access_key_id,
                "SecretAccessKey": self.secret_access_key,
                "Token": self.session_token,
                "LastUpdated": _format_timestamp(self.issued_at),
                "Expiration": _format_timestamp(self.expiration),
            }
        )

    @classmethod
    def from_document(cls, identity_name: str, document: dict[str, Any]) -> Self:
        """Build an identity from an instance metadata credentials document."""
        return cls(
            identity_name=identity_name,
            access_key_id=document["AccessKeyId"],
            secret_access_key=document["SecretAccessKey"],
            session_token=document.get("Token"),
            issued_at=_parse_timestamp(document.get("LastUpdated")),
            expiration=_parse_timestamp(document.get("Expiration")),
        )

    @classmethod
    def from_json(cls, value: str) -> Self:
        document = json.loads(value)
        if not isinstance(document, dict):
            raise ValueError("Cached identity must be a JSON object.")
        return cls.from_document(document["IdentityName"], document)


class IdentityResolver(Protocol):
    """Used to load a dynamic identity from a given source."""

    async def get_identity(self) -> CachedIdentity:
        """Load the identity from this resolver.

        :raises CredentialsUnavailableError: If no identity could be obtained.
        """
        ...
