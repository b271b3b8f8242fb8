"""
Database service layer for the placement portal.

This module provides CRUD operations and filtered listings:
- Jobs: list/get/create/update/delete, with an audit log entry per change
- Events: list/get/create/update/delete
- Students: filtered + paginated listing, single fetch, bulk profile update

Placement state (status, can_sit_for_more, final_placed_*) is never written
here - see app.services.placement_engine.
"""

import logging
from typing import Optional

from sqlalchemy import func, or_, case
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.job import Job, JobLog, JobStatus, JobType
from app.models.event import Event
from app.models.student import Student
from app.services.ctc import categorize_ctc

logger = logging.getLogger(__name__)

# Fields the bulk student update may touch
BULK_UPDATABLE_STUDENT_FIELDS = (
    "email", "mobile", "cgpa", "current_arrears", "history_of_arrears",
)
MAX_BULK_UPDATE = 100

# OPEN first, then IN_PROGRESS, then everything that is winding down
_STATUS_ORDER = case(
    {
        JobStatus.OPEN.value: 0,
        JobStatus.IN_PROGRESS.value: 1,
        JobStatus.APPLICATIONS_CLOSED.value: 2,
        JobStatus.ON_HOLD.value: 3,
        JobStatus.COMPLETED.value: 4,
        JobStatus.CANCELLED.value: 5,
        JobStatus.CLOSED.value: 6,
    },
    value=Job.status,
    else_=7
)


def _commit(db: Session, action: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Failed to {action}; transaction rolled back")
        raise


# ============ JOB OPERATIONS ============

def get_all_jobs(
    db: Session,
    status: str = None,
    job_type: str = None,
    category: str = None
) -> list[Job]:
    """
    Get jobs with optional filtering.

    Ordered by status (OPEN first) and then by earliest apply-by date.
    """
    query = db.query(Job)

    if status:
        query = query.filter(Job.status == status)
    if job_type:
        query = query.filter(Job.type == job_type)
    if category:
        query = query.filter(Job.category == category)

    return query.order_by(_STATUS_ORDER, Job.apply_by.asc()).all()


def get_jobs_for_export(db: Session, status: str = None, job_type: str = None) -> list[Job]:
    """Jobs for CSV export, newest first. "all" means no filter."""
    query = db.query(Job)

    if status and status != "all":
        query = query.filter(Job.status == status)
    if job_type and job_type != "all":
        query = query.filter(Job.type == job_type)

    return query.order_by(Job.created_at.desc(), Job.id.desc()).all()


def get_job_by_id(db: Session, job_id: int) -> Optional[Job]:
    """Get a single job by ID."""
    return db.query(Job).filter(Job.id == job_id).first()


def create_job(db: Session, performed_by: str, fields: dict) -> Job:
    """
    Create a job and log the creation.

    Args:
        db: Database session
        performed_by: Username of the admin creating the job
        fields: Validated job fields (company and title required)

    Returns:
        Job: The newly created job
    """
    data = dict(fields)
    data["type"] = data.get("type") or JobType.FTE.value
    data["status"] = data.get("status") or JobStatus.OPEN.value
    data["category"] = data.get("category") or categorize_ctc(data.get("ctc")).value

    job = Job(**data)
    db.add(job)
    db.flush()

    db.add(JobLog(
        job_id=job.id,
        action="CREATED",
        description=f'Job "{job.title}" at {job.company} created',
        performed_by=performed_by
    ))

    _commit(db, f"create job at {job.company}")
    db.refresh(job)
    logger.info(f"Created job {job.id}: {job.title} at {job.company}")
    return job


def update_job(db: Session, job_id: int, performed_by: str, fields: dict) -> Optional[Job]:
    """
    Update a job and log what changed.

    Only keys present in `fields` are written.

    Returns:
        Job if updated, None if it does not exist
    """
    job = get_job_by_id(db, job_id)
    if not job:
        return None

    changes = []
    if "status" in fields and fields["status"] and fields["status"] != job.status:
        changes.append(f"Status: {job.status} → {fields['status']}")
    if "category" in fields and fields["category"] and fields["category"] != job.category:
        changes.append(f"Category: {job.category} → {fields['category']}")

    for key, value in fields.items():
        # Enum columns are NOT NULL; an explicit null keeps the current value
        if key in ("type", "status", "category", "gender_requirement") and value is None:
            continue
        setattr(job, key, value)

    db.add(JobLog(
        job_id=job.id,
        action="UPDATED",
        description=f"Job updated: {', '.join(changes)}" if changes else "Job details updated",
        performed_by=performed_by
    ))

    _commit(db, f"update job {job_id}")
    db.refresh(job)
    return job


def delete_job(db: Session, job_id: int) -> Optional[dict]:
    """
    Delete a job (its logs cascade; offers keep their copy of the details).

    Returns:
        {"company", "title"} of the deleted job, or None if it does not exist
    """
    job = get_job_by_id(db, job_id)
    if not job:
        return None

    deleted = {"company": job.company, "title": job.title}
    db.delete(job)
    _commit(db, f"delete job {job_id}")
    logger.info(f"Deleted job {job_id}: {deleted['title']} at {deleted['company']}")
    return deleted


# ============ EVENT OPERATIONS ============

def get_all_events(db: Session, category: str = None) -> list[Event]:
    """Get events ordered by start time, optionally by category."""
    query = db.query(Event)
    if category:
        query = query.filter(Event.category == category)
    return query.order_by(Event.start_time.asc()).all()


def get_event_by_id(db: Session, event_id: int) -> Optional[Event]:
    return db.query(Event).filter(Event.id == event_id).first()


def create_event(db: Session, fields: dict) -> Event:
    event = Event(**fields)
    db.add(event)
    _commit(db, "create event")
    db.refresh(event)
    return event


def update_event(db: Session, event_id: int, fields: dict) -> Optional[Event]:
    """Replace an event's fields. None if it does not exist."""
    event = get_event_by_id(db, event_id)
    if not event:
        return None

    for key, value in fields.items():
        setattr(event, key, value)

    _commit(db, f"update event {event_id}")
    db.refresh(event)
    return event


def delete_event(db: Session, event_id: int) -> bool:
    event = get_event_by_id(db, event_id)
    if not event:
        return False

    db.delete(event)
    _commit(db, f"delete event {event_id}")
    return True


# ============ STUDENT QUERIES ============

def _filter_students(
    query,
    department: str = None,
    section: str = None,
    status: str = None,
    search: str = None
):
    if department:
        query = query.filter(Student.department == department)
    if section:
        query = query.filter(Student.section == section)
    if status:
        query = query.filter(Student.placement_status == status)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            Student.name.ilike(pattern),
            Student.roll_number.ilike(pattern),
            Student.email.ilike(pattern),
        ))
    return query


def get_students(
    db: Session,
    skip: int = 0,
    limit: int = 50,
    department: str = None,
    section: str = None,
    status: str = None,
    search: str = None
) -> list[Student]:
    """
    Get students with optional filtering.

    Args:
        db: Database session
        skip: Offset for pagination
        limit: Max results (default 50)
        department: Exact department
        section: Exact section
        status: Placement status
        search: Partial, case-insensitive match on name, roll number or email

    Returns:
        List of Student objects ordered by department, section, roll number
    """
    query = _filter_students(db.query(Student), department, section, status, search)
    query = query.order_by(
        Student.department.asc(),
        Student.section.asc(),
        Student.roll_number.asc()
    )
    return query.offset(skip).limit(limit).all()


def get_students_count(
    db: Session,
    department: str = None,
    section: str = None,
    status: str = None,
    search: str = None
) -> int:
    """Get total count of students for pagination."""
    query = _filter_students(
        db.query(func.count(Student.id)), department, section, status, search
    )
    return query.scalar()


def get_student_by_id(db: Session, student_id: int) -> Optional[Student]:
    """Get a single student (placements load with it, newest first)."""
    return db.query(Student).filter(Student.id == student_id).first()


def get_student_by_roll_number(db: Session, roll_number: str) -> Optional[Student]:
    return db.query(Student).filter(Student.roll_number == roll_number).first()


def bulk_update_students(db: Session, student_ids: list[int], updates: dict) -> int:
    """
    Apply the same profile update to many students.

    Only BULK_UPDATABLE_STUDENT_FIELDS are accepted; the caller's schema
    enforces this, and it is re-checked here.

    Returns:
        Number of rows updated
    """
    unknown = set(updates) - set(BULK_UPDATABLE_STUDENT_FIELDS)
    if unknown:
        raise ValueError(f"Fields cannot be bulk updated: {', '.join(sorted(unknown))}")
    if len(student_ids) > MAX_BULK_UPDATE:
        raise ValueError(f"Cannot update more than {MAX_BULK_UPDATE} students at once")
    if not updates or not student_ids:
        return 0

    count = db.query(Student).filter(
        Student.id.in_(student_ids)
    ).update(updates, synchronize_session=False)

    _commit(db, f"bulk update {len(student_ids)} students")
    return count
