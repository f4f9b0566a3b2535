"""Member domain exports."""
from .entity import Identity, Role
from .repository import MemberRepository

__all__ = ["Identity", "Role", "MemberRepository"]
