"""Poll domain exports."""
from .entity import Poll, PollVote, coerce_option_index
from .repository import PollRepository

__all__ = ["Poll", "PollVote", "PollRepository", "coerce_option_index"]
