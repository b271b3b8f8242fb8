"""
Student and StudentPlacement models.

Student holds the academic record plus the placement state that the
eligibility engine (app.services.placement_engine) owns:
- placement_status, can_sit_for_more
- final_placed_* snapshot of the most recently accepted offer

StudentPlacement is one offer extended to a student. CTC and stipend
stay free text, matching the format written by the CSV import tooling.
"""

from sqlalchemy import (
    Column, Integer, String, Float, Text, Boolean,
    ForeignKey, DateTime, Index
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base
import enum


class PlacementStatus(str, enum.Enum):
    """Where a student stands in the placement season."""
    OPTED_IN = "OPTED_IN"
    OPTED_OUT = "OPTED_OUT"
    HIGHER_STUDIES = "HIGHER_STUDIES"
    PLACED = "PLACED"              # accepted offer <= threshold, may sit for more
    PLACED_FINAL = "PLACED_FINAL"  # accepted offer above threshold, done


PLACED_STATUSES = (PlacementStatus.PLACED.value, PlacementStatus.PLACED_FINAL.value)


class OfferStatus(str, enum.Enum):
    """State of a single offer. PENDING -> ACCEPTED | REJECTED."""
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class Student(Base):
    """A student record, created by bulk import."""
    __tablename__ = "students"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    roll_number = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(255))
    mobile = Column(String(50))

    # ============ ACADEMIC ============
    department = Column(String(100), nullable=False, index=True)
    batch = Column(String(20), nullable=False)  # e.g. "2022-2026"
    section = Column(String(10))
    cgpa = Column(Float)
    current_arrears = Column(Integer, nullable=False, default=0)
    history_of_arrears = Column(String(50))

    # ============ PLACEMENT STATE (engine-owned) ============
    placement_status = Column(
        String(20), nullable=False,
        default=PlacementStatus.OPTED_IN.value, index=True
    )
    can_sit_for_more = Column(Boolean, nullable=False, default=True)
    final_placed_company = Column(String(255))
    final_placed_job_title = Column(String(255))
    final_placed_ctc = Column(String(100))
    final_placed_job_type = Column(String(30))
    final_placed_date = Column(DateTime)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    placements = relationship(
        "StudentPlacement",
        back_populates="student",
        cascade="all, delete-orphan",
        order_by="StudentPlacement.created_at.desc()"
    )

    __table_args__ = (
        Index("ix_students_dept_section_roll", "department", "section", "roll_number"),
    )

    def __repr__(self):
        return f"<Student(id={self.id}, roll={self.roll_number}, status={self.placement_status})>"


class StudentPlacement(Base):
    """One offer extended to a student."""
    __tablename__ = "student_placements"

    id = Column(Integer, primary_key=True)
    student_id = Column(
        Integer, ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False, index=True
    )
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="SET NULL"), index=True)

    company = Column(String(255), nullable=False)
    job_title = Column(String(255), nullable=False)
    ctc = Column(String(100))
    stipend = Column(String(100))
    job_type = Column(String(30))
    offer_date = Column(DateTime, nullable=False, server_default=func.now())
    offer_status = Column(String(20), nullable=False, default=OfferStatus.PENDING.value)
    is_accepted = Column(Boolean, nullable=False, default=False)
    notes = Column(Text)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    student = relationship("Student", back_populates="placements")
    job = relationship("Job", back_populates="placements")

    def __repr__(self):
        return f"<StudentPlacement(id={self.id}, student_id={self.student_id}, company={self.company})>"
