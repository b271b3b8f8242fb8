"""
Student and placement-offer endpoints.

Every route here requires a signed-in admin (student data is PII).

Offer routes are scoped by the student in the URL: an offer that belongs
to a different student answers 404 exactly like a missing one.

Placement state is only ever changed through app.services.placement_engine.
"""

from fastapi import APIRouter, Depends, Query, HTTPException
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field, field_validator, model_validator
from datetime import datetime
from typing import Optional

from app.database import get_db
from app.models.student import PlacementStatus, OfferStatus
from app.services import db_service, placement_engine
from app.api.v1.deps import get_current_user


router = APIRouter(
    prefix="/students",
    tags=["Students"],
    dependencies=[Depends(get_current_user)]
)


# ============ Request Schemas ============

def _check_acceptance(offer_status: Optional[str], is_accepted: Optional[bool]) -> None:
    """is_accepted and offer_status == ACCEPTED must agree when both are given."""
    if is_accepted is False and offer_status == OfferStatus.ACCEPTED.value:
        raise ValueError("offer_status ACCEPTED contradicts is_accepted=false")
    if is_accepted and offer_status not in (None, OfferStatus.ACCEPTED.value):
        raise ValueError(f"offer_status {offer_status} contradicts is_accepted=true")


def _reject_null(value, field_name: str):
    """For NOT NULL columns: the field may be left out but not sent as null."""
    if value is None:
        raise ValueError(f"{field_name} cannot be null")
    return value


class OfferCreate(BaseModel):
    """A new offer for a student. company and job_title are required."""
    job_id: Optional[int] = None
    company: str = Field(..., min_length=1, max_length=255)
    job_title: str = Field(..., min_length=1, max_length=255)
    ctc: Optional[str] = Field(None, max_length=100)
    stipend: Optional[str] = Field(None, max_length=100)
    job_type: Optional[str] = Field(None, max_length=30)
    offer_date: Optional[datetime] = None
    offer_status: Optional[OfferStatus] = None
    is_accepted: Optional[bool] = None
    notes: Optional[str] = None

    class Config:
        extra = "forbid"
        use_enum_values = True

    @model_validator(mode="after")
    def check_acceptance(self):
        _check_acceptance(self.offer_status, self.is_accepted)
        return self


class OfferUpdate(BaseModel):
    offer_status: Optional[OfferStatus] = None
    is_accepted: Optional[bool] = None
    notes: Optional[str] = None

    class Config:
        extra = "forbid"
        use_enum_values = True

    @model_validator(mode="after")
    def check_acceptance(self):
        _check_acceptance(self.offer_status, self.is_accepted)
        return self


class StudentUpdate(BaseModel):
    """
    Admin edit of a student.

    can_sit_for_more is not accepted - it is always derived from
    final_placed_ctc.
    current_arrears and placement_status may be left out but not sent as null.
    """
    email: Optional[str] = None
    mobile: Optional[str] = None
    cgpa: Optional[float] = Field(None, ge=0, le=10)
    current_arrears: Optional[int] = Field(None, ge=0)
    history_of_arrears: Optional[str] = None
    placement_status: Optional[PlacementStatus] = None
    final_placed_company: Optional[str] = None
    final_placed_job_title: Optional[str] = None
    final_placed_ctc: Optional[str] = None
    final_placed_job_type: Optional[str] = None
    final_placed_date: Optional[datetime] = None

    class Config:
        extra = "forbid"
        use_enum_values = True

    @field_validator("current_arrears", "placement_status")
    @classmethod
    def not_null(cls, value, info):
        return _reject_null(value, info.field_name)


class BulkProfileUpdate(BaseModel):
    email: Optional[str] = None
    mobile: Optional[str] = None
    cgpa: Optional[float] = Field(None, ge=0, le=10)
    current_arrears: Optional[int] = Field(None, ge=0)
    history_of_arrears: Optional[str] = None

    class Config:
        extra = "forbid"

    @field_validator("current_arrears")
    @classmethod
    def current_arrears_not_null(cls, value):
        return _reject_null(value, "current_arrears")


class BulkStudentUpdate(BaseModel):
    student_ids: list[int] = Field(..., min_length=1, max_length=db_service.MAX_BULK_UPDATE)
    updates: BulkProfileUpdate

    class Config:
        extra = "forbid"


# ============ Response Schemas ============

class PlacementResponse(BaseModel):
    id: int
    student_id: int
    job_id: Optional[int]
    company: str
    job_title: str
    ctc: Optional[str]
    stipend: Optional[str]
    job_type: Optional[str]
    offer_date: datetime
    offer_status: str
    is_accepted: bool
    notes: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class StudentResponse(BaseModel):
    id: int
    name: str
    roll_number: str
    email: Optional[str]
    mobile: Optional[str]
    department: str
    batch: str
    section: Optional[str]
    cgpa: Optional[float]
    current_arrears: int
    history_of_arrears: Optional[str]
    placement_status: str
    can_sit_for_more: bool
    final_placed_company: Optional[str]
    final_placed_job_title: Optional[str]
    final_placed_ctc: Optional[str]
    final_placed_job_type: Optional[str]
    final_placed_date: Optional[datetime]

    class Config:
        from_attributes = True


class StudentDetailResponse(StudentResponse):
    placements: list[PlacementResponse] = []


class Pagination(BaseModel):
    page: int
    limit: int
    total_count: int
    total_pages: int
    has_more: bool


class StudentsListResponse(BaseModel):
    students: list[StudentDetailResponse]
    pagination: Pagination


# ============ STUDENTS ============

@router.get("", response_model=StudentsListResponse)
def list_students(
    page: int = Query(1, ge=1, description="Page number, from 1"),
    limit: int = Query(50, ge=1, le=200, description="Students per page"),
    department: Optional[str] = Query(None, description="Filter by exact department"),
    section: Optional[str] = Query(None, description="Filter by exact section"),
    status: Optional[PlacementStatus] = Query(None, description="Filter by placement status"),
    search: Optional[str] = Query(None, description="Name, roll number or email (partial)"),
    db: Session = Depends(get_db)
):
    """
    List students with their offers, paginated.

    **Example:**
    ```
    GET /api/v1/students?department=BTech%20AIDS&status=PLACED&page=2
    ```
    """
    filters = dict(
        department=department,
        section=section,
        status=status.value if status else None,
        search=search
    )
    skip = (page - 1) * limit

    students = db_service.get_students(db=db, skip=skip, limit=limit, **filters)
    total = db_service.get_students_count(db=db, **filters)

    return StudentsListResponse(
        students=[StudentDetailResponse.model_validate(s) for s in students],
        pagination=Pagination(
            page=page,
            limit=limit,
            total_count=total,
            total_pages=-(-total // limit),
            has_more=skip + len(students) < total
        )
    )


@router.put("")
def bulk_update_students(data: BulkStudentUpdate, db: Session = Depends(get_db)):
    """
    Apply the same profile change to up to 100 students.

    Only email, mobile, cgpa, current_arrears and history_of_arrears may be
    bulk updated; placement fields go through the per-student endpoint.
    """
    updates = data.updates.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    updated = db_service.bulk_update_students(db, data.student_ids, updates)
    return {"success": True, "updated": updated}


@router.get("/{student_id}", response_model=StudentDetailResponse)
def get_student(student_id: int, db: Session = Depends(get_db)):
    """Get a student with all offers, newest first."""
    student = db_service.get_student_by_id(db, student_id)
    if not student:
        raise HTTPException(status_code=404, detail="Student not found")
    return student


@router.put("/{student_id}", response_model=StudentDetailResponse)
def update_student(student_id: int, data: StudentUpdate, db: Session = Depends(get_db)):
    """
    Admin edit of a student.

    Setting placement_status to OPTED_IN / OPTED_OUT / HIGHER_STUDIES clears
    the final placed snapshot. Sending final_placed_* values for a student
    who is not (or will not be) placed is rejected with 422.

    For PLACED / PLACED_FINAL, can_sit_for_more and the exact status are
    re-derived from final_placed_ctc: PLACED_FINAL with a CTC at or below
    6 LPA is stored as PLACED. The response carries the stored status.
    """
    try:
        student = placement_engine.update_student(
            db, student_id, data.model_dump(exclude_unset=True)
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    if not student:
        raise HTTPException(status_code=404, detail="Student not found")
    return student


# ============ OFFERS ============

@router.post("/{student_id}/placements", response_model=PlacementResponse)
def record_offer(student_id: int, data: OfferCreate, db: Session = Depends(get_db)):
    """
    Record an offer for a student.

    If `is_accepted` is true the student's placement status is updated
    in the same transaction.
    """
    placement = placement_engine.record_offer(db, student_id, **data.model_dump())
    if not placement:
        raise HTTPException(status_code=404, detail="Student or job not found")
    return placement


@router.put("/{student_id}/placements/{placement_id}", response_model=PlacementResponse)
def update_offer(
    student_id: int,
    placement_id: int,
    data: OfferUpdate,
    db: Session = Depends(get_db)
):
    """
    Accept, reject or annotate an offer.

    Accepting (is_accepted false -> true) updates the student.
    Rejecting never rolls the student back.
    """
    placement = placement_engine.update_offer(
        db, student_id, placement_id, data.model_dump(exclude_unset=True)
    )
    if not placement:
        raise HTTPException(status_code=404, detail="Placement not found")
    return placement


@router.delete("/{student_id}/placements/{placement_id}")
def delete_offer(student_id: int, placement_id: int, db: Session = Depends(get_db)):
    """Delete an offer. The student's placement status is not reverted."""
    if not placement_engine.delete_offer(db, student_id, placement_id):
        raise HTTPException(status_code=404, detail="Placement not found")
    return {"success": True}
