#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import logging
from typing import Final

from ..exceptions import CredentialsUnavailableError
from .components import IdentityResolver, ResolvedCredentials

logger: Final = logging.getLogger(__name__)


class CredentialSource:
    """Chooses between static keys and a dynamic identity for each request.

    Static keys always win. Without them, the dynamic resolver fixed at
    construction is asked for an identity. When neither yields credentials the
    request continues unauthenticated and a warning is logged.
    """

    def __init__(
        self,
        *,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        resolver: IdentityResolver | None = None,
    ) -> None:
        self._access_key_id = access_key_id or ""
        self._secret_access_key = secret_access_key or ""
        self._resolver = resolver

    @property
    def has_static_credentials(self) -> bool:
        return bool(self._access_key_id) and bool(self._secret_access_key)

    @property
    def resolver(self) -> IdentityResolver | None:
        return self._resolver

    async def resolve(self) -> ResolvedCredentials:
        if self.has_static_credentials:
            return ResolvedCredentials(
                access_key_id=self._access_key_id,
                secret_access_key=self._secret_access_key,
            )

        if self._resolver is None:
            logger.warning(
                "Could not discover IAM User. Please provide aws_access_key and "
                "aws_secret_key"
            )
            return ResolvedCredentials.empty()

        try:
            identity = await self._resolver.get_identity()
        except CredentialsUnavailableError as e:
            logger.warning(
                "Could not resolve credentials from %s, continuing without "
                "credentials: %s",
                type(self._resolver).__name__,
                e,
            )
            return ResolvedCredentials.empty()

        logger.debug(
            "Resolved credentials for %s with access key %s",
            identity.identity_name,
            identity.access_key_id,
        )
        return identity.to_credentials()
