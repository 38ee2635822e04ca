"""Notification and category preference models."""

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func

from skillmatrix.database import Base


class Notification(Base):
    """
    In-app notification addressed to one profile.

    Attributes:
        user_id: Recipient (profiles.user_id)
        title: Short headline
        message: Body text
        type: info, success, warning or error
        read: Whether the recipient has seen it
    """

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, ForeignKey("profiles.user_id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String, default="info", nullable=False)
    read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        """String representation of Notification."""
        return f"<Notification(id={self.id}, user_id='{self.user_id}', title='{self.title}')>"


class UserCategoryPreference(Base):
    """Which skill categories a profile has chosen to see."""

    __tablename__ = "user_category_preferences"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, ForeignKey("profiles.user_id"), nullable=False, unique=True)
    visible_category_ids = Column(JSON, default=list, nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)
