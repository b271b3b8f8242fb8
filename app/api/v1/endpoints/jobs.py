"""
Job board API endpoints.

Reads are public; create/update/delete require a signed-in admin.
"""

from fastapi import APIRouter, Depends, Query, HTTPException
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

from app.database import get_db
from app.models.job import JobType, JobCategory, JobStatus, GenderRequirement, VisitMode
from app.models.user import User
from app.services import db_service
from app.api.v1.deps import get_current_user


router = APIRouter(prefix="/jobs", tags=["Jobs"])

JOB_LOG_LIMIT = 50


# ============ Request Schemas ============

class JobRequest(BaseModel):
    """Job fields accepted on create and update. Unknown fields are rejected."""
    # Basic info
    company: str = Field(..., min_length=1, max_length=255)
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    about_company: Optional[str] = None

    # Compensation, free text e.g. "12 LPA"
    ctc: Optional[str] = Field(None, max_length=100)
    stipend: Optional[str] = Field(None, max_length=100)

    # Job details
    type: Optional[JobType] = None
    category: Optional[JobCategory] = None
    status: Optional[JobStatus] = None
    location: Optional[str] = None
    link: Optional[str] = None

    # Dates
    apply_by: Optional[datetime] = None
    date_of_visit: Optional[datetime] = None
    hiring_starts_on: Optional[datetime] = None
    mode_of_visit: Optional[VisitMode] = None

    # Eligibility
    min_cgpa: Optional[float] = Field(None, ge=0, le=10)
    min_10th_percentage: Optional[float] = Field(None, ge=0, le=100)
    min_12th_percentage: Optional[float] = Field(None, ge=0, le=100)
    min_diploma_percentage: Optional[float] = Field(None, ge=0, le=100)
    min_sem_percentage: Optional[float] = Field(None, ge=0, le=100)
    max_current_arrears: Optional[int] = Field(None, ge=0)
    max_history_arrears: Optional[int] = Field(None, ge=0)
    gender_requirement: Optional[GenderRequirement] = None
    eligibility_branches: Optional[str] = None
    other_eligibility: Optional[str] = None

    # POC
    poc_name: Optional[str] = None
    poc_email: Optional[str] = None
    poc_phone: Optional[str] = None

    not_applied_points_deduct: Optional[int] = Field(None, ge=0)

    class Config:
        extra = "forbid"
        use_enum_values = True


# ============ Response Schemas ============

class JobResponse(BaseModel):
    id: int
    company: str
    title: str
    description: Optional[str]
    about_company: Optional[str]
    ctc: Optional[str]
    stipend: Optional[str]
    type: str
    category: str
    status: str
    location: Optional[str]
    link: Optional[str]
    apply_by: Optional[datetime]
    date_of_visit: Optional[datetime]
    hiring_starts_on: Optional[datetime]
    mode_of_visit: Optional[str]
    min_cgpa: Optional[float]
    min_10th_percentage: Optional[float]
    min_12th_percentage: Optional[float]
    min_diploma_percentage: Optional[float]
    min_sem_percentage: Optional[float]
    max_current_arrears: Optional[int]
    max_history_arrears: Optional[int]
    gender_requirement: str
    eligibility_branches: Optional[str]
    other_eligibility: Optional[str]
    poc_name: Optional[str]
    poc_email: Optional[str]
    poc_phone: Optional[str]
    not_applied_points_deduct: Optional[int]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class JobLogResponse(BaseModel):
    action: str
    description: Optional[str]
    performed_by: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class JobDetailResponse(JobResponse):
    logs: list[JobLogResponse] = []


class JobDeleteResponse(BaseModel):
    success: bool
    message: str


# ============ PUBLIC READS ============

@router.get("", response_model=list[JobResponse])
def list_jobs(
    status: Optional[JobStatus] = Query(None, description="Filter by status"),
    type: Optional[JobType] = Query(None, description="Filter by job type"),
    category: Optional[JobCategory] = Query(None, description="Filter by category"),
    db: Session = Depends(get_db)
):
    """
    List jobs, OPEN first, then by earliest apply-by date.

    **Example:**
    ```
    GET /api/v1/jobs?status=OPEN&category=DREAM
    ```
    """
    return db_service.get_all_jobs(
        db=db,
        status=status.value if status else None,
        job_type=type.value if type else None,
        category=category.value if category else None
    )


@router.get("/{job_id}", response_model=JobDetailResponse)
def get_job(job_id: int, db: Session = Depends(get_db)):
    """
    Get a single job with its most recent audit log entries.

    **Returns:**
    - 200: Job details
    - 404: Job not found
    """
    job = db_service.get_job_by_id(db, job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")

    detail = JobDetailResponse.model_validate(job)
    detail.logs = detail.logs[:JOB_LOG_LIMIT]
    return detail


# ============ ADMIN MUTATIONS ============

@router.post("", response_model=JobResponse, status_code=201)
def create_job(
    data: JobRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Create a job. Category defaults to the CTC band when not given.
    """
    return db_service.create_job(db, user.username, data.model_dump(exclude_none=True))


@router.put("/{job_id}", response_model=JobResponse)
def update_job(
    job_id: int,
    data: JobRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update a job. Fields not sent are left unchanged."""
    job = db_service.update_job(db, job_id, user.username, data.model_dump(exclude_unset=True))
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return job


@router.delete("/{job_id}", response_model=JobDeleteResponse)
def delete_job(
    job_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    deleted = db_service.delete_job(db, job_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Job not found")

    return JobDeleteResponse(
        success=True,
        message=f'Job "{deleted["title"]}" at {deleted["company"]} deleted successfully'
    )
