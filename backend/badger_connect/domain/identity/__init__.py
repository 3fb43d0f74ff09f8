"""Identity domain exports."""

from .registry import IdentityRegistry

__all__ = ["IdentityRegistry"]
