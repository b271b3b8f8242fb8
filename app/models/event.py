"""
Event model - calendar entries (drives, tests, interviews, deadlines).
"""

from sqlalchemy import Column, Integer, String, Text, DateTime, Index
from sqlalchemy.sql import func
from app.database import Base
import enum


class EventCategory(str, enum.Enum):
    PLACEMENT = "PLACEMENT"
    EXAM = "EXAM"
    INFO_SESSION = "INFO_SESSION"
    OA = "OA"
    INTERVIEW = "INTERVIEW"
    DEADLINE = "DEADLINE"
    OTHER = "OTHER"


CATEGORY_LABELS = {
    EventCategory.PLACEMENT.value: "Placement",
    EventCategory.EXAM.value: "Exam",
    EventCategory.INFO_SESSION.value: "Info Session",
    EventCategory.OA.value: "Online Assessment",
    EventCategory.INTERVIEW.value: "Interview",
    EventCategory.DEADLINE.value: "Deadline",
    EventCategory.OTHER.value: "Other",
}


def category_label(category: str) -> str:
    """Human readable label for an event category."""
    return CATEGORY_LABELS.get(category, "Other")


class Event(Base):
    """A calendar event."""
    __tablename__ = "events"

    id = Column(Integer, primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    category = Column(String(20), nullable=False, default=EventCategory.OTHER.value)
    link = Column(String(512))

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("ix_events_start_time", "start_time"),
    )

    def __repr__(self):
        return f"<Event(id={self.id}, title={self.title}, category={self.category})>"
