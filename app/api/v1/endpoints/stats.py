"""
Dashboard statistics endpoints.

Recomputed from the database on every request.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import Optional

from app.database import get_db
from app.services import stats_service
from app.api.v1.deps import get_current_user


router = APIRouter(prefix="/stats", tags=["Stats"])


# ============ Response Schemas ============

class CompanyCount(BaseModel):
    company: str
    count: int


class PaidJob(BaseModel):
    company: str
    title: Optional[str] = None
    ctc: str
    ctc_value: float


class JobStatsResponse(BaseModel):
    total_jobs: int
    open_jobs: int
    closed_jobs: int
    recent_jobs: int
    category_breakdown: dict[str, int]
    type_breakdown: dict[str, int]
    top_recruiters: list[CompanyCount]
    top_paid_jobs: list[PaidJob]
    highest_ctc: str
    highest_ctc_company: str


class StatusCount(BaseModel):
    status: str
    count: int


class DepartmentCount(BaseModel):
    department: str
    count: int


class DepartmentCgpa(BaseModel):
    department: str
    avg_cgpa: str


class CtcAverages(BaseModel):
    """Average placed CTC (LPA). Students with no CTC on record are left out."""
    top_50: float
    top_100: float
    top_150: float
    overall: float
    counted_students: int


class StudentStatsResponse(BaseModel):
    total_students: int
    placed_count: int
    placement_percentage: str
    placement_status_breakdown: list[StatusCount]
    department_breakdown: list[DepartmentCount]
    avg_cgpa_by_department: list[DepartmentCgpa]
    top_recruiters: list[CompanyCount]
    ctc_averages: CtcAverages


# ============ ENDPOINTS ============

@router.get("", response_model=JobStatsResponse)
def job_stats(
    top: int = Query(10, ge=1, le=50, description="How many top paid jobs to return"),
    db: Session = Depends(get_db)
):
    """Job board statistics (public)."""
    return stats_service.get_job_stats(db, top_n=top)


@router.get(
    "/students",
    response_model=StudentStatsResponse,
    dependencies=[Depends(get_current_user)]
)
def student_stats(db: Session = Depends(get_db)):
    """Placement statistics across students (admins only)."""
    return stats_service.get_student_stats(db)
