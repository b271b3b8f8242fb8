"""
SQLAlchemy models for the placement portal.

This package contains:
- Job, JobLog: Company postings and their audit trail
- Event: Calendar entries
- Student, StudentPlacement: Student records and the offers they receive
- User: Admin accounts
"""

from app.models.job import Job, JobLog
from app.models.event import Event
from app.models.student import Student, StudentPlacement
from app.models.user import User

__all__ = ["Job", "JobLog", "Event", "Student", "StudentPlacement", "User"]
