"""
AllOne Models Package
"""

from allone.models.user import User, UserSession, UserRole, AcademicYear
from allone.models.note import Note, Subject, Grade
from allone.models.category import Category
from allone.models.community import CommunityPost, PostComment, PostType
from allone.models.daily_question import DailyQuestion, QuestionAnswer, Difficulty
from allone.models.upload import StoredFile, UploadKind

__all__ = [
    "User", "UserSession", "UserRole", "AcademicYear",
    "Note", "Subject", "Grade",
    "Category",
    "CommunityPost", "PostComment", "PostType",
    "DailyQuestion", "QuestionAnswer", "Difficulty",
    "StoredFile", "UploadKind",
]
