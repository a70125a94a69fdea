#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import importlib.metadata

from .builder import AMZ_JSON_1_0, AMZ_JSON_1_1, FORM_URLENCODED
from .config import ServiceConfig
from .exceptions import ConfigError, CredentialsUnavailableError, ServiceCoreError
from .service import AwsService
from .transport import ActionResult, AIOHTTPTransport, Transport, TransportRequest

__version__: str = importlib.metadata.version("aws-service-core")

__all__ = (
    "AMZ_JSON_1_0",
    "AMZ_JSON_1_1",
    "FORM_URLENCODED",
    "AIOHTTPTransport",
    "ActionResult",
    "AwsService",
    "ConfigError",
    "CredentialsUnavailableError",
    "ServiceConfig",
    "ServiceCoreError",
    "Transport",
    "TransportRequest",
)
