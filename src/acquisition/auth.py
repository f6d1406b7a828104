"""Authentication providers consulted before calling the primary store."""

from typing import Optional, Protocol

from src.models.data_models import UserIdentity


class AuthProvider(Protocol):
    """Supplies the currently signed-in user, if any."""

    def current_user(self) -> Optional[UserIdentity]:
        """Return the signed-in user or None when anonymous."""
        ...


class AnonymousAuthProvider:
    """Provider for sessions with nobody signed in."""

    def current_user(self) -> Optional[UserIdentity]:
        return None


class StaticAuthProvider:
    """Provider holding a fixed identity, swappable via sign_in/sign_out."""

    def __init__(self, identity: Optional[UserIdentity] = None):
        self._identity = identity

    @classmethod
    def from_credentials(cls, user_id: Optional[str], email: Optional[str] = None) -> "StaticAuthProvider":
        if not user_id:
            return cls()
        return cls(UserIdentity(user_id=user_id, email=email or ""))

    def current_user(self) -> Optional[UserIdentity]:
        return self._identity

    def sign_in(self, identity: UserIdentity) -> None:
        self._identity = identity

    def sign_out(self) -> None:
        self._identity = None
