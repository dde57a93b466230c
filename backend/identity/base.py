"""
Identity provider interface.

An identity is the authentication account (email + credential) owned by the
auth backend. Profile rows live in our own tables and are keyed by its id.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


class IdentityError(Exception):
    """Raised when the auth backend rejects or fails an operation."""


@dataclass
class Identity:
    id: str
    email: str
    email_confirmed: bool = False
    metadata: Dict[str, Any] = field(default_factory=dict)


class IdentityProvider(ABC):

    # True when the backend inserts the profile row itself after an identity is created
    creates_profile_rows = False

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[Identity]:
        ...

    @abstractmethod
    async def get_identity(self, identity_id: str) -> Optional[Identity]:
        ...

    @abstractmethod
    async def create_identity(
        self,
        email: str,
        password: Optional[str] = None,
        email_confirmed: bool = False,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Identity:
        ...

    @abstractmethod
    async def update_password(self, identity_id: str, password: str, mark_password_set: bool = False) -> None:
        ...

    @abstractmethod
    async def send_magic_link(self, email: str, redirect_to: str) -> None:
        """Email a passwordless sign-in link. Never creates an identity."""

    @abstractmethod
    async def authenticate(self, email: str, password: str) -> Optional[Identity]:
        ...

    @abstractmethod
    async def verify_magic_link(self, token: str) -> Tuple[Identity, Optional[str]]:
        """Consume a sign-in token; returns the identity and the redirect target."""
