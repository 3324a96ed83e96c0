"""Account directory collaborator.

The ledger never owns account metadata. It asks a directory whether an id is
acceptable before mutating a balance, and for display data when listing
accounts. Deployments plug in their own implementation; the static one below
only checks the id format.
"""

from __future__ import annotations

import re
from typing import Iterable, Mapping, Protocol

from .exceptions import InvalidAccountError
from .models import AccountProfile


class AccountDirectory(Protocol):
    async def validate(self, account_id: str) -> None:
        ...

    async def describe(self, account_ids: Iterable[str]) -> dict[str, AccountProfile]:
        ...


class StaticAccountDirectory:
    def __init__(self, pattern: str, profiles: Mapping[str, AccountProfile] | None = None) -> None:
        self._pattern = re.compile(pattern)
        self._profiles = dict(profiles or {})

    async def validate(self, account_id: str) -> None:
        if not self._pattern.fullmatch(account_id):
            raise InvalidAccountError(f"Malformed account id: {account_id!r}")

    async def describe(self, account_ids: Iterable[str]) -> dict[str, AccountProfile]:
        return {
            account_id: self._profiles[account_id]
            for account_id in account_ids
            if account_id in self._profiles
        }
