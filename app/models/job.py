"""
Job model - a company's posting on the placement portal.

Compensation (ctc, stipend) is stored as free text exactly as the
placement office writes it, e.g. "12.5 LPA" or "50k/month".
Numeric CTC is derived on read via app.services.ctc.parse_ctc.
"""

from sqlalchemy import (
    Column, Integer, String, Float, Text,
    ForeignKey, DateTime, Index
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base
import enum


class JobType(str, enum.Enum):
    """Kind of opportunity offered."""
    SUMMER_INTERN = "SUMMER_INTERN"
    REGULAR_INTERN = "REGULAR_INTERN"
    INTERNSHIP = "INTERNSHIP"
    FTE = "FTE"
    INTERN_PLUS_FTE = "INTERN_PLUS_FTE"
    INTERN_LEADS_TO_FTE = "INTERN_LEADS_TO_FTE"
    BOTH = "BOTH"


class JobCategory(str, enum.Enum):
    """CTC band of a posting."""
    MARQUE = "MARQUE"            # 20L+
    SUPER_DREAM = "SUPER_DREAM"  # 10-20L
    DREAM = "DREAM"              # 6-10L
    CORE = "CORE"
    REGULAR = "REGULAR"          # 0-3.9L
    OTHER = "OTHER"


class JobStatus(str, enum.Enum):
    """Lifecycle of a posting."""
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    APPLICATIONS_CLOSED = "APPLICATIONS_CLOSED"
    ON_HOLD = "ON_HOLD"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    CLOSED = "CLOSED"


class GenderRequirement(str, enum.Enum):
    ANY = "ANY"
    MALE = "MALE"
    FEMALE = "FEMALE"
    BOTH = "BOTH"


class VisitMode(str, enum.Enum):
    PHYSICAL = "PHYSICAL"
    ONLINE = "ONLINE"
    HYBRID = "HYBRID"


class Job(Base):
    """
    A placement posting.

    Each row = one company drive shown on the jobs board.
    """
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True)

    # ============ BASIC INFO ============
    company = Column(String(255), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    about_company = Column(Text)

    # ============ COMPENSATION (free text) ============
    ctc = Column(String(100))
    stipend = Column(String(100))

    # ============ JOB DETAILS ============
    type = Column(String(30), nullable=False, default=JobType.FTE.value)
    category = Column(String(30), nullable=False, default=JobCategory.OTHER.value, index=True)
    status = Column(String(30), nullable=False, default=JobStatus.OPEN.value, index=True)
    location = Column(String(255))
    link = Column(String(512))

    # ============ DATES ============
    apply_by = Column(DateTime)
    date_of_visit = Column(DateTime)
    hiring_starts_on = Column(DateTime)
    mode_of_visit = Column(String(20))

    # ============ ELIGIBILITY ============
    min_cgpa = Column(Float)
    min_10th_percentage = Column(Float)
    min_12th_percentage = Column(Float)
    min_diploma_percentage = Column(Float)
    min_sem_percentage = Column(Float)
    max_current_arrears = Column(Integer, default=0)
    max_history_arrears = Column(Integer, default=0)
    gender_requirement = Column(String(10), nullable=False, default=GenderRequirement.ANY.value)
    eligibility_branches = Column(String(512))  # e.g. "CSE, IT, ECE"
    other_eligibility = Column(Text)

    # ============ POINT OF CONTACT ============
    poc_name = Column(String(255))
    poc_email = Column(String(255))
    poc_phone = Column(String(50))

    not_applied_points_deduct = Column(Integer, default=0)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    logs = relationship(
        "JobLog",
        back_populates="job",
        cascade="all, delete-orphan",
        order_by="JobLog.created_at.desc()"
    )
    placements = relationship("StudentPlacement", back_populates="job")

    __table_args__ = (
        Index("ix_jobs_status_apply_by", "status", "apply_by"),
    )

    def __repr__(self):
        return f"<Job(id={self.id}, company={self.company}, title={self.title})>"


class JobLog(Base):
    """Audit trail entry for a job (created / updated)."""
    __tablename__ = "job_logs"

    id = Column(Integer, primary_key=True)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    action = Column(String(30), nullable=False)  # CREATED, UPDATED
    description = Column(Text)
    performed_by = Column(String(100))
    created_at = Column(DateTime, server_default=func.now())

    job = relationship("Job", back_populates="logs")

    def __repr__(self):
        return f"<JobLog(job_id={self.job_id}, action={self.action})>"
