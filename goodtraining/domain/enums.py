"""
Domain enums matching the values the REST backend sends and accepts.
"""

from enum import Enum


class UserRole(str, Enum):
    """Account role carried by users and session tokens."""

    TRAINEE = "trainee"
    SUPERVISOR = "supervisor"
    ADMIN = "admin"


class Gender(str, Enum):
    """Gender values used by registration forms and avatar selection."""

    MALE = "male"
    FEMALE = "female"


class ApprovalStatus(str, Enum):
    """Supervisor profile review state, set by an admin."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ReportStatus(str, Enum):
    """Handling state of a user report in the admin dashboard."""

    PENDING = "pending"
    REVIEWED = "reviewed"
    COMPLETED = "completed"


class ArticleCategory(str, Enum):
    """Categories of psychology articles. Values are what the backend stores."""

    RESEARCH_TRENDS = "연구동향"
    THERAPY = "치료법"
    COUNSELING_TECHNIQUES = "상담기법"
    GENERAL = "일반"
    IN_DEPTH = "상세분석"
