#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import logging
from unittest.mock import AsyncMock

import pytest
from aws_service_core.exceptions import CredentialsUnavailableError
from aws_service_core.identity import (
    CachedIdentity,
    CredentialSource,
    ResolvedCredentials,
)


def _resolver() -> AsyncMock:
    resolver = AsyncMock()
    resolver.get_identity.return_value = CachedIdentity(
        identity_name="role",
        access_key_id="ASIAEXAMPLE",
        secret_access_key="secret",
        session_token="session",
    )
    return resolver


async def test_static_credentials_take_precedence():
    resolver = _resolver()
    source = CredentialSource(
        access_key_id="AK", secret_access_key="SK", resolver=resolver
    )
    assert source.has_static_credentials
    assert await source.resolve() == ResolvedCredentials(
        access_key_id="AK", secret_access_key="SK"
    )
    resolver.get_identity.assert_not_awaited()


@pytest.mark.parametrize(
    "access_key_id, secret_access_key", [("AK", None), (None, "SK"), ("", "")]
)
async def test_partial_static_credentials_use_resolver(
    access_key_id: str | None, secret_access_key: str | None
):
    resolver = _resolver()
    source = CredentialSource(
        access_key_id=access_key_id,
        secret_access_key=secret_access_key,
        resolver=resolver,
    )
    credentials = await source.resolve()
    assert credentials.access_key_id == "ASIAEXAMPLE"
    assert credentials.session_token == "session"
    resolver.get_identity.assert_awaited_once()


async def test_dynamic_identity_resolved_each_time():
    resolver = _resolver()
    source = CredentialSource(resolver=resolver)
    await source.resolve()
    await source.resolve()
    assert resolver.get_identity.await_count == 2


async def test_no_source_returns_empty_credentials(caplog: pytest.LogCaptureFixture):
    source = CredentialSource()
    with caplog.at_level(logging.WARNING):
        credentials = await source.resolve()
    assert credentials.is_empty
    assert (
        "Could not discover IAM User. Please provide aws_access_key and "
        "aws_secret_key" in caplog.text
    )


async def test_resolver_failure_returns_empty_credentials(
    caplog: pytest.LogCaptureFixture,
):
    resolver = AsyncMock()
    resolver.get_identity.side_effect = CredentialsUnavailableError("metadata down")
    source = CredentialSource(resolver=resolver)
    with caplog.at_level(logging.WARNING):
        credentials = await source.resolve()
    assert credentials == ResolvedCredentials.empty()
    assert "metadata down" in caplog.text


async def test_unexpected_resolver_errors_propagate():
    resolver = AsyncMock()
    resolver.get_identity.side_effect = RuntimeError("boom")
    source = CredentialSource(resolver=resolver)
    with pytest.raises(RuntimeError, match="boom"):
        await source.resolve()
