"""
Download endpoints: calendar as CSV / ICS / PDF, jobs as CSV / PDF.
"""

from datetime import date
from typing import Optional, Union

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.database import get_db
from app.services import db_service, export_service


router = APIRouter(prefix="/export", tags=["Export"])


def _attachment(content: Union[str, bytes], media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


# ============ CALENDAR ============

@router.get("/csv")
def export_events_csv(db: Session = Depends(get_db)):
    """All events as CSV."""
    events = db_service.get_all_events(db)
    return _attachment(export_service.events_to_csv(events), "text/csv", "placement-calendar.csv")


@router.get("/ics")
def export_events_ics(db: Session = Depends(get_db)):
    """All events as an iCalendar file for calendar apps."""
    events = db_service.get_all_events(db)
    return _attachment(export_service.events_to_ics(events), "text/calendar", "placement-calendar.ics")


@router.get("/pdf")
def export_events_pdf(db: Session = Depends(get_db)):
    """All events as a printable PDF, in chronological order."""
    events = db_service.get_all_events(db)
    return _attachment(export_service.events_to_pdf(events), "application/pdf", "placement-calendar.pdf")


# ============ JOBS ============

@router.get("/jobs-csv")
def export_jobs_csv(
    status: Optional[str] = Query(None, description="Job status or 'all'"),
    type: Optional[str] = Query(None, description="Job type or 'all'"),
    db: Session = Depends(get_db)
):
    """Jobs as CSV, newest first."""
    jobs = db_service.get_jobs_for_export(db, status=status, job_type=type)
    filename = f"jobs-{date.today().isoformat()}.csv"
    return _attachment(export_service.jobs_to_csv(jobs), "text/csv", filename)


@router.get("/jobs-pdf")
def export_jobs_pdf(
    status: Optional[str] = Query(None, description="Job status or 'all'"),
    type: Optional[str] = Query(None, description="Job type or 'all'"),
    db: Session = Depends(get_db)
):
    """Jobs report as PDF, newest first. Same filters as /jobs-csv."""
    jobs = db_service.get_jobs_for_export(db, status=status, job_type=type)
    filename = f"jobs-{date.today().isoformat()}.pdf"
    return _attachment(export_service.jobs_to_pdf(jobs), "application/pdf", filename)
