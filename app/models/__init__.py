"""SQLAlchemy database models."""

from app.models.base import Base
from app.models.blog_post import BlogPost
from app.models.learning import AdminFeedbackLog, CronLog, LearningData
from app.models.performance import ContentPerformance, PerformanceAlert

__all__ = [
    "Base",
    "BlogPost",
    "ContentPerformance",
    "PerformanceAlert",
    "LearningData",
    "AdminFeedbackLog",
    "CronLog",
]
