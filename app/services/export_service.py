"""
Export formatters: events and jobs to CSV and PDF, events to iCalendar (ICS).

Pure formatting - callers fetch the rows.
"""

import io
from datetime import datetime
from typing import Iterable, Optional
from xml.sax.saxutils import escape

import pandas as pd
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer

from app.models.event import Event, category_label
from app.models.job import Job

DATE_FORMAT = "%Y-%m-%d %H:%M"
ICS_DATE_FORMAT = "%Y%m%dT%H%M%SZ"
ICS_PRODID = "-//Placement Portal//Calendar Export//EN"

EVENT_CSV_COLUMNS = [
    "Title", "Description", "Start Time", "End Time", "Category", "Link", "Created At",
]

JOB_CSV_COLUMNS = [
    "Company", "Title", "CTC", "Stipend", "Type", "Category", "Status",
    "Location", "Apply By", "Date of Visit", "Min CGPA", "Eligible Branches",
    "POC Name", "POC Email", "POC Phone",
]

# PDF tables: (header, width in points); widths fill a landscape A4 page
EVENT_PDF_COLUMNS = [
    ("Title", 150), ("Category", 90), ("Start", 95), ("End", 95),
    ("Description", 220), ("Link", 120),
]
JOB_PDF_COLUMNS = [
    ("Company", 110), ("Title", 130), ("CTC", 70), ("Type", 90),
    ("Category", 80), ("Status", 80), ("Apply By", 90), ("Location", 120),
]
PDF_MARGIN = 36


def _fmt(value: Optional[datetime]) -> str:
    return value.strftime(DATE_FORMAT) if value else ""


def _to_csv(columns: list[str], rows: Iterable[list]) -> str:
    return pd.DataFrame(list(rows), columns=columns).to_csv(index=False)


# ============ CSV ============

def events_to_csv(events: Iterable[Event]) -> str:
    """One row per event, category shown with its human label."""
    return _to_csv(EVENT_CSV_COLUMNS, (
        [
            event.title,
            event.description or "",
            _fmt(event.start_time),
            _fmt(event.end_time),
            category_label(event.category),
            event.link or "",
            _fmt(event.created_at),
        ]
        for event in events
    ))


def jobs_to_csv(jobs: Iterable[Job]) -> str:
    return _to_csv(JOB_CSV_COLUMNS, (
        [
            job.company,
            job.title,
            job.ctc or "",
            job.stipend or "",
            job.type,
            job.category,
            job.status,
            job.location or "",
            _fmt(job.apply_by),
            _fmt(job.date_of_visit),
            "" if job.min_cgpa is None else job.min_cgpa,
            job.eligibility_branches or "",
            job.poc_name or "",
            job.poc_email or "",
            job.poc_phone or "",
        ]
        for job in jobs
    ))


# ============ PDF ============

def _build_pdf(title: str, subtitles: list[str], columns: list[tuple], rows: list[list]) -> bytes:
    """Render a titled landscape report holding one table."""
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=landscape(A4),
        title=title,
        leftMargin=PDF_MARGIN,
        rightMargin=PDF_MARGIN,
        topMargin=PDF_MARGIN,
        bottomMargin=PDF_MARGIN,
    )
    styles = getSampleStyleSheet()
    cell_style = styles["BodyText"]

    story = [Paragraph(title, styles["Title"])]
    story.extend(Paragraph(line, styles["Normal"]) for line in subtitles)
    story.append(Spacer(1, 12))

    # Cells go through Paragraph so long text wraps; its mini-markup needs escaping
    data = [[header for header, _ in columns]]
    data.extend(
        [Paragraph(escape(str(value)), cell_style) for value in row]
        for row in rows
    )

    table = Table(data, colWidths=[width for _, width in columns], repeatRows=1)
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#1f3a5f")),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#f2f4f7")]),
    ]))
    story.append(table)

    doc.build(story)
    return buffer.getvalue()


def events_to_pdf(events: Iterable[Event], now: Optional[datetime] = None) -> bytes:
    """Placement calendar as a PDF table, in the order given."""
    rows = [
        [
            event.title,
            category_label(event.category),
            _fmt(event.start_time),
            _fmt(event.end_time),
            event.description or "",
            event.link or "",
        ]
        for event in events
    ]
    return _build_pdf(
        "Placement Calendar",
        [f"Generated on: {_fmt(now or datetime.utcnow())}"],
        EVENT_PDF_COLUMNS,
        rows,
    )


def jobs_to_pdf(jobs: Iterable[Job], now: Optional[datetime] = None) -> bytes:
    """Jobs report as a PDF table, with a total count under the title."""
    rows = [
        [
            job.company,
            job.title,
            job.ctc or "",
            job.type,
            job.category,
            job.status,
            _fmt(job.apply_by),
            job.location or "",
        ]
        for job in jobs
    ]
    return _build_pdf(
        "Placement Jobs Report",
        [f"Generated on: {_fmt(now or datetime.utcnow())}", f"Total Jobs: {len(rows)}"],
        JOB_PDF_COLUMNS,
        rows,
    )


# ============ ICS ============

def _escape_ics(text: Optional[str]) -> str:
    """Escape TEXT values per RFC 5545 section 3.3.11."""
    if not text:
        return ""
    return (
        text.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
    )


def events_to_ics(events: Iterable[Event], now: Optional[datetime] = None) -> str:
    """
    Build a VCALENDAR document with one VEVENT per event.

    Stored times are naive UTC and are written with a trailing Z.
    """
    stamp = (now or datetime.utcnow()).strftime(ICS_DATE_FORMAT)

    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{ICS_PRODID}",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
    ]

    for event in events:
        lines.extend([
            "BEGIN:VEVENT",
            f"UID:event-{event.id}@placement-portal",
            f"DTSTAMP:{stamp}",
            f"DTSTART:{event.start_time.strftime(ICS_DATE_FORMAT)}",
            f"DTEND:{event.end_time.strftime(ICS_DATE_FORMAT)}",
            f"SUMMARY:{_escape_ics(event.title)}",
            f"DESCRIPTION:{_escape_ics(event.description)}",
            f"LOCATION:{_escape_ics(event.link)}",
            f"CATEGORIES:{_escape_ics(category_label(event.category))}",
            "END:VEVENT",
        ])

    lines.append("END:VCALENDAR")
    return "\r\n".join(lines) + "\r\n"
