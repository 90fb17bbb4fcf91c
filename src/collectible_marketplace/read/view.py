from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from aptos_sdk.account_address import AccountAddress
from aptos_sdk.async_client import RestClient

from ..config import MarketplaceConfig
from ..errors import MalformedResponseError

logger = logging.getLogger(__name__)


def _decode_view_response(raw: Any) -> list[Any]:
    """
    Normalize a `RestClient.view()` result into a list of return values.

    Depending on the SDK version the response is raw JSON bytes or already decoded.
    """
    if isinstance(raw, (bytes, bytearray, str)):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise MalformedResponseError("View response is not valid JSON") from e
    if not isinstance(raw, list):
        raise MalformedResponseError(f"View response must be a JSON array, got {raw!r}")
    return raw


def _wire_arg(value: Any) -> Any:
    """View arguments travel as JSON: integers (u64) must be decimal strings."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    return value


@dataclass(slots=True)
class MarketplaceViewCaller:
    """
    Thin wrapper over the fullnode view API for the marketplace module.

    Every call is a pure state read; the marketplace address is always the first
    argument. Unlike `MarketplaceRead`, errors propagate.
    """

    client: RestClient
    config: MarketplaceConfig

    async def call(self, function_name: str, *args: Any) -> list[Any]:
        function = self.config.function_id(function_name)
        arguments = [self.config.marketplace_address, *(_wire_arg(a) for a in args)]
        logger.debug("view %s %s", function, arguments)
        raw = await self.client.view(function, [], arguments)
        return _decode_view_response(raw)

    async def call_one(self, function_name: str, *args: Any) -> Any:
        values = await self.call(function_name, *args)
        if not values:
            raise MalformedResponseError(f"{function_name} returned no values")
        return values[0]

    async def marketplace_resource(self) -> dict[str, Any]:
        resource = await self.client.account_resource(
            AccountAddress.from_str_relaxed(self.config.marketplace_address),
            self.config.resource_type,
        )
        data = resource.get("data") if isinstance(resource, dict) else None
        if not isinstance(data, dict):
            raise MalformedResponseError(
                f"Unexpected resource shape for {self.config.resource_type}"
            )
        return data
