#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import base64
from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from ..builder import AMZ_JSON_1_1
from ..config import ServiceConfig
from ..service import AwsService
from ..transport import ActionResult


class KmsService(AwsService):
    """Client for the AWS Key Management Service JSON API.

    Every action is sent as a signed POST to ``/`` over HTTPS. Responses are
    returned raw; the body is a JSON document.
    """

    def __init__(self, config: ServiceConfig | None, **kwargs: Any) -> None:
        if config is not None and config.target_prefix is None:
            config = replace(config, target_prefix="TrentService")
        super().__init__(config, **kwargs)

    async def _call(self, action: str, params: Mapping[str, Any]) -> ActionResult:
        return await self.perform_action(
            action,
            params,
            method="POST",
            use_tls=True,
            content_type=AMZ_JSON_1_1,
        )

    async def generate_data_key(
        self,
        key_id: str,
        key_spec: str = "AES_256",
        encryption_context: Mapping[str, str] | None = None,
    ) -> ActionResult:
        params: dict[str, Any] = {"KeyId": key_id, "KeySpec": key_spec}
        if encryption_context:
            params["EncryptionContext"] = dict(encryption_context)
        return await self._call("GenerateDataKey", params)

    async def encrypt(
        self,
        key_id: str,
        plaintext: bytes,
        encryption_context: Mapping[str, str] | None = None,
    ) -> ActionResult:
        params: dict[str, Any] = {
            "KeyId": key_id,
            "Plaintext": base64.b64encode(plaintext).decode("ascii"),
        }
        if encryption_context:
            params["EncryptionContext"] = dict(encryption_context)
        return await self._call("Encrypt", params)

    async def decrypt(
        self,
        ciphertext_blob: bytes,
        encryption_context: Mapping[str, str] | None = None,
    ) -> ActionResult:
        params: dict[str, Any] = {
            "CiphertextBlob": base64.b64encode(ciphertext_blob).decode("ascii")
        }
        if encryption_context:
            params["EncryptionContext"] = dict(encryption_context)
        return await self._call("Decrypt", params)

    async def list_keys(self, limit: int | None = None) -> ActionResult:
        params: dict[str, Any] = {}
        if limit is not None:
            params["Limit"] = limit
        return await self._call("ListKeys", params)
