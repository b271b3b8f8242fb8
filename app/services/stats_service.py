"""
Dashboard statistics.

All numbers are recomputed from the database on every call; nothing is cached.

CTC policy (applied to every CTC rollup here):
- Rows with a NULL or empty CTC are excluded before aggregating.
- Rows with CTC text but no numeral ("TBD") parse to 0 via parse_ctc
  and ARE included - they pull averages down rather than vanish.
- An empty population averages to 0.0.
"""

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.job import Job, JobStatus
from app.models.student import Student, PLACED_STATUSES
from app.services.ctc import parse_ctc

TOP_RECRUITERS_LIMIT = 10
RECENT_JOBS_DAYS = 30
CTC_AVERAGE_BUCKETS = (50, 100, 150)


def _has_ctc(column):
    return (column.isnot(None)) & (column != "")


def average_ctc(ctc_values: list[str], top_n: Optional[int] = None) -> float:
    """
    Average parsed CTC of the top-N values (all values if top_n is None).

    Callers pass only non-empty CTC strings; see module docstring.
    """
    parsed = sorted((parse_ctc(value) for value in ctc_values), reverse=True)
    if top_n is not None:
        parsed = parsed[:top_n]
    if not parsed:
        return 0.0
    return round(sum(parsed) / len(parsed), 2)


# ============ JOB STATS ============

def top_paid_jobs(db: Session, limit: int = 10) -> list[dict]:
    """
    Highest paying jobs by parsed CTC, descending.

    Sorting happens on the parsed number, not the string, so "8 LPA"
    ranks below "20 LPA".
    """
    rows = db.query(Job.company, Job.title, Job.ctc).filter(_has_ctc(Job.ctc)).all()

    ranked = sorted(
        ({"company": r.company, "title": r.title, "ctc": r.ctc, "ctc_value": parse_ctc(r.ctc)}
         for r in rows),
        key=lambda job: job["ctc_value"],
        reverse=True
    )
    return ranked[:limit]


def top_recruiters_by_jobs(db: Session, limit: int = TOP_RECRUITERS_LIMIT) -> list[dict]:
    """Companies with the most postings."""
    job_count = func.count(Job.id)
    rows = db.query(Job.company, job_count).group_by(Job.company).order_by(
        job_count.desc(), Job.company.asc()
    ).limit(limit).all()
    return [{"company": company, "count": count} for company, count in rows]


def _breakdown(db: Session, column) -> dict:
    rows = db.query(column, func.count(Job.id)).group_by(column).all()
    return {key: count for key, count in rows}


def get_job_stats(db: Session, top_n: int = 10) -> dict:
    """
    Job board rollups: counts, breakdowns, top recruiters and top paid jobs.
    """
    recent_cutoff = datetime.utcnow() - timedelta(days=RECENT_JOBS_DAYS)
    paid = top_paid_jobs(db, limit=top_n)
    highest = paid[0] if paid else None

    return {
        "total_jobs": db.query(func.count(Job.id)).scalar(),
        "open_jobs": db.query(func.count(Job.id)).filter(
            Job.status == JobStatus.OPEN.value
        ).scalar(),
        "closed_jobs": db.query(func.count(Job.id)).filter(
            Job.status == JobStatus.CLOSED.value
        ).scalar(),
        "recent_jobs": db.query(func.count(Job.id)).filter(
            Job.created_at >= recent_cutoff
        ).scalar(),
        "category_breakdown": _breakdown(db, Job.category),
        "type_breakdown": _breakdown(db, Job.type),
        "top_recruiters": top_recruiters_by_jobs(db),
        "top_paid_jobs": paid,
        "highest_ctc": highest["ctc"] if highest else "N/A",
        "highest_ctc_company": highest["company"] if highest else "N/A",
    }


# ============ STUDENT STATS ============

def top_recruiters_by_placements(db: Session, limit: int = TOP_RECRUITERS_LIMIT) -> list[dict]:
    """Companies with the most placed students (by final placed company)."""
    placed_count = func.count(Student.id)
    rows = db.query(Student.final_placed_company, placed_count).filter(
        Student.placement_status.in_(PLACED_STATUSES),
        Student.final_placed_company.isnot(None)
    ).group_by(Student.final_placed_company).order_by(
        placed_count.desc(), Student.final_placed_company.asc()
    ).limit(limit).all()
    return [{"company": company, "count": count} for company, count in rows]


def placed_ctc_averages(db: Session) -> dict:
    """Average placed CTC over the top 50 / 100 / 150 placed students and overall."""
    ctc_values = [
        ctc for (ctc,) in db.query(Student.final_placed_ctc).filter(
            Student.placement_status.in_(PLACED_STATUSES),
            _has_ctc(Student.final_placed_ctc)
        ).all()
    ]

    averages = {f"top_{n}": average_ctc(ctc_values, top_n=n) for n in CTC_AVERAGE_BUCKETS}
    averages["overall"] = average_ctc(ctc_values)
    averages["counted_students"] = len(ctc_values)
    return averages


def get_student_stats(db: Session) -> dict:
    """Placement season rollups for the admin dashboard."""
    total_students = db.query(func.count(Student.id)).scalar()
    placed_count = db.query(func.count(Student.id)).filter(
        Student.placement_status.in_(PLACED_STATUSES)
    ).scalar()

    placement_percentage = (
        f"{placed_count / total_students * 100:.2f}" if total_students > 0 else "0"
    )

    status_rows = db.query(
        Student.placement_status, func.count(Student.id)
    ).group_by(Student.placement_status).all()

    department_rows = db.query(
        Student.department, func.count(Student.id), func.avg(Student.cgpa)
    ).group_by(Student.department).order_by(Student.department.asc()).all()

    return {
        "total_students": total_students,
        "placed_count": placed_count,
        "placement_percentage": placement_percentage,
        "placement_status_breakdown": [
            {"status": status, "count": count} for status, count in status_rows
        ],
        "department_breakdown": [
            {"department": department, "count": count}
            for department, count, _ in department_rows
        ],
        "avg_cgpa_by_department": [
            {
                "department": department,
                "avg_cgpa": f"{avg_cgpa:.3f}" if avg_cgpa is not None else "N/A",
            }
            for department, _, avg_cgpa in department_rows
        ],
        "top_recruiters": top_recruiters_by_placements(db),
        "ctc_averages": placed_ctc_averages(db),
    }
