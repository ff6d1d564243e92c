"""
Session State

The current session is an explicit value passed into every ledger
operation and handed back in its Outcome, instead of a pointer hidden
inside the ledger. A session references an Account; it never owns it.
"""

from dataclasses import dataclass
from typing import Optional

from .accounts import Account


@dataclass(frozen=True)
class Session:
    """Either logged out (account is None) or active for one account"""
    account: Optional[Account] = None

    @classmethod
    def logged_out(cls) -> 'Session':
        return cls(None)

    @classmethod
    def active(cls, account: Account) -> 'Session':
        return cls(account)

    @property
    def is_active(self) -> bool:
        return self.account is not None

    @property
    def account_id(self) -> Optional[str]:
        return self.account.id if self.account is not None else None


@dataclass(frozen=True)
class Outcome:
    """Result of a ledger operation: the session to continue with and a message"""
    session: Session
    message: str
    success: bool = False
