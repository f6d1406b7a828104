"""Product listing acquisition with primary/fallback source switching."""

from .auth import AnonymousAuthProvider, AuthProvider, StaticAuthProvider
from .controller import AcquisitionController

__all__ = ["AcquisitionController", "AnonymousAuthProvider", "AuthProvider", "StaticAuthProvider"]
