#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from .cache import IdentityCache, MemoryIdentityCache
from .components import CachedIdentity, IdentityResolver, ResolvedCredentials
from .imds import InstanceMetadataConfig, InstanceMetadataCredentialsResolver
from .source import CredentialSource

__all__ = (
    "CachedIdentity",
    "CredentialSource",
    "IdentityCache",
    "IdentityResolver",
    "InstanceMetadataConfig",
    "InstanceMetadataCredentialsResolver",
    "MemoryIdentityCache",
    "ResolvedCredentials",
)
