"""Infrastructure models package exports."""
from .base import Base, metadata
from .board import SubjectModel, QuestionModel

__all__ = [
    "Base",
    "metadata",
    "SubjectModel",
    "QuestionModel",
]
