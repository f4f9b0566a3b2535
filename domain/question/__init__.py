"""Question domain exports."""
from .entity import Answer, Question
from .repository import QuestionRepository

__all__ = ["Answer", "Question", "QuestionRepository"]
