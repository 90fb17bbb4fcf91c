from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from aptos_sdk.account import Account
from aptos_sdk.async_client import RestClient


@runtime_checkable
class TransactionSigner(Protocol):
    """
    The wallet capability the write path depends on.

    Implementations sign the JSON entry function payload, submit it, and return the
    transaction hash. Key management is entirely theirs.
    """

    async def sign_and_submit(self, payload: dict[str, Any]) -> str: ...


@dataclass(slots=True)
class AccountSigner:
    """`TransactionSigner` backed by a local `aptos_sdk` account."""

    client: RestClient
    account: Account

    @property
    def address(self) -> str:
        return str(self.account.address())

    async def sign_and_submit(self, payload: dict[str, Any]) -> str:
        return await self.client.submit_transaction(self.account, payload)
