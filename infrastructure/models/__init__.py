"""Infrastructure models package exports."""
from .base import Base, metadata
from .member import MemberModel
from .announcement import AnnouncementModel
from .question import QuestionModel, AnswerModel
from .poll import PollModel, PollOptionModel, PollVoteModel

__all__ = [
    "Base",
    "metadata",
    "MemberModel",
    "AnnouncementModel",
    "QuestionModel",
    "AnswerModel",
    "PollModel",
    "PollOptionModel",
    "PollVoteModel",
]
