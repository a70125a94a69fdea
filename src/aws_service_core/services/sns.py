#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from collections.abc import Mapping
from dataclasses import replace
from typing import Any, Final

from ..builder import FORM_URLENCODED
from ..service import AwsService
from ..transport import ActionResult, TransportRequest

API_VERSION: Final = "2010-03-31"


class SnsService(AwsService):
    """Client for the Amazon Simple Notification Service query API."""

    async def _call(self, action: str, params: Mapping[str, Any]) -> ActionResult:
        return await self.perform_action(
            action,
            {**params, "Version": API_VERSION},
            method="POST",
            use_tls=True,
            content_type=FORM_URLENCODED,
        )

    def shape_request(self, request: TransportRequest) -> TransportRequest:
        # The query protocol routes on the Action parameter, not on a target header.
        headers = {
            name: value
            for name, value in request.headers.items()
            if name.lower() != "x-amz-target"
        }
        return replace(request, headers=headers)

    async def publish(
        self, topic_arn: str, message: str, subject: str | None = None
    ) -> ActionResult:
        params = {"TopicArn": topic_arn, "Message": message}
        if subject is not None:
            params["Subject"] = subject
        return await self._call("Publish", params)

    async def list_topics(self, next_token: str | None = None) -> ActionResult:
        params = {} if next_token is None else {"NextToken": next_token}
        return await self._call("ListTopics", params)
