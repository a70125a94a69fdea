#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from .mocktransport import MockTransport, MockTransportError

__all__ = ("MockTransport", "MockTransportError")
