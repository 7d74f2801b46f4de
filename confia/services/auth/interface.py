"""
Identity / Session Provider Interface

The record store only needs to know WHO is signed in (for owner stamping)
and WHEN that changes (to switch backends and refetch).
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional

from pydantic import BaseModel, Field


class Principal(BaseModel):
    """The authenticated user that owns records created in remote mode."""

    id: str = Field(..., min_length=1)
    email: Optional[str] = None


SessionListener = Callable[[Optional[Principal]], None]


class SessionProviderInterface(ABC):
    """Abstract identity provider."""

    @abstractmethod
    def get_session(self) -> Optional[Principal]:
        """Current principal, or None when signed out."""
        pass

    @abstractmethod
    def sign_in(self, email: str, password: str) -> Principal:
        """
        Sign in with email and password.

        Raises:
            AuthError: If the credentials were rejected
        """
        pass

    @abstractmethod
    def sign_out(self) -> None:
        """End the current session."""
        pass

    @abstractmethod
    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """
        Call `listener` whenever the session changes.

        Returns:
            A function that cancels the subscription
        """
        pass


class AuthError(Exception):
    """Sign-in failed or the identity provider is unreachable."""
    pass
