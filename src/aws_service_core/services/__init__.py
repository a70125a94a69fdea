#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from .kms import KmsService
from .sns import SnsService

__all__ = ("KmsService", "SnsService")
