"""Account metadata supplied by the account directory."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(slots=True)
class AccountProfile:
    account_id: str
    display_name: Optional[str] = None
    email: Optional[str] = None
