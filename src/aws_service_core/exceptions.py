#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0


class ServiceCoreError(Exception):
    """Base exception type for all exceptions raised by aws-service-core."""


class ConfigError(ServiceCoreError, ValueError):
    """Raised when a service client is constructed with invalid configuration.

    This is always raised synchronously at construction time; a client that failed
    to construct can never issue a request.
    """


class CredentialsUnavailableError(ServiceCoreError):
    """Raised by dynamic credential resolvers when no identity could be obtained.

    :py:class:`aws_service_core.identity.CredentialSource` does not propagate this
    error. It logs a warning and continues with empty credentials instead.
    """
