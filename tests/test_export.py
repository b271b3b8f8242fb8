import io
from datetime import datetime

import pandas as pd

from app.models.event import Event
from app.models.job import Job
from app.services import export_service


def _event(**overrides):
    fields = dict(
        id=7,
        title="Acme drive",
        description="Bring resume; ID card, and laptop",
        start_time=datetime(2025, 10, 1, 9, 0),
        end_time=datetime(2025, 10, 1, 17, 0),
        category="PLACEMENT",
        link="https://example.com/acme",
        created_at=datetime(2025, 9, 20, 12, 0),
    )
    fields.update(overrides)
    return Event(**fields)


def _read_csv(text):
    return pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False)


def test_events_to_csv():
    frame = _read_csv(export_service.events_to_csv([_event(category="OA")]))

    assert list(frame.columns) == export_service.EVENT_CSV_COLUMNS
    assert frame.iloc[0].tolist() == [
        "Acme drive",
        "Bring resume; ID card, and laptop",
        "2025-10-01 09:00",
        "2025-10-01 17:00",
        "Online Assessment",
        "https://example.com/acme",
        "2025-09-20 12:00",
    ]


def test_events_to_ics():
    ics = export_service.events_to_ics([_event()], now=datetime(2025, 9, 30, 8, 0))

    assert ics.startswith("BEGIN:VCALENDAR\r\nVERSION:2.0\r\n")
    assert ics.endswith("END:VCALENDAR\r\n")
    lines = ics.split("\r\n")
    assert "UID:event-7@placement-portal" in lines
    assert "DTSTAMP:20250930T080000Z" in lines
    assert "DTSTART:20251001T090000Z" in lines
    assert "DTEND:20251001T170000Z" in lines
    assert "DESCRIPTION:Bring resume\\; ID card\\, and laptop" in lines
    assert "CATEGORIES:Placement" in lines


def test_ics_escapes_newlines():
    ics = export_service.events_to_ics([_event(description="Line one\nLine two")])
    assert "DESCRIPTION:Line one\\nLine two" in ics.split("\r\n")


def test_export_endpoints(auth_client, client, make_job):
    auth_client.post("/api/v1/events", json={
        "title": "Info session",
        "start_time": "2025-10-02T15:00:00",
        "end_time": "2025-10-02T16:00:00",
        "category": "INFO_SESSION",
    })
    make_job(company="Acme", ctc="9 LPA", status="OPEN")
    make_job(company="Globex", status="CLOSED")

    response = client.get("/api/v1/export/ics")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/calendar")
    assert 'filename="placement-calendar.ics"' in response.headers["content-disposition"]
    assert "SUMMARY:Info session" in response.text

    response = client.get("/api/v1/export/csv")
    assert response.headers["content-type"].startswith("text/csv")
    assert "Info Session" in response.text

    response = client.get("/api/v1/export/jobs-csv", params={"status": "OPEN", "type": "all"})
    assert _read_csv(response.text)["Company"].tolist() == ["Acme"]
    assert response.headers["content-disposition"].startswith('attachment; filename="jobs-')


def test_events_to_pdf():
    pdf = export_service.events_to_pdf(
        [_event(), _event(id=8, title="Results <final> & offers", description=None)],
        now=datetime(2025, 9, 30, 8, 0)
    )

    assert pdf.startswith(b"%PDF-")
    assert pdf.rstrip().endswith(b"%%EOF")


def test_jobs_to_pdf_with_no_jobs():
    assert export_service.jobs_to_pdf([]).startswith(b"%PDF-")


def test_jobs_to_pdf():
    jobs = [
        Job(company="Acme", title="SDE", ctc="12 LPA", type="FTE", category="SUPER_DREAM",
            status="OPEN", apply_by=datetime(2025, 10, 5), location="Chennai"),
        Job(company="Globex", title="Analyst", type="INTERNSHIP", category="OTHER", status="CLOSED"),
    ]

    assert export_service.jobs_to_pdf(jobs).startswith(b"%PDF-")


def test_pdf_endpoints(auth_client, client, make_job):
    auth_client.post("/api/v1/events", json={
        "title": "Info session",
        "start_time": "2025-10-02T15:00:00",
        "end_time": "2025-10-02T16:00:00",
        "category": "INFO_SESSION",
    })
    make_job(company="Acme", ctc="9 LPA")

    response = client.get("/api/v1/export/pdf")
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert 'filename="placement-calendar.pdf"' in response.headers["content-disposition"]
    assert response.content.startswith(b"%PDF-")

    response = client.get("/api/v1/export/jobs-pdf", params={"status": "all"})
    assert response.status_code == 200
    assert response.headers["content-disposition"].endswith('.pdf"')
    assert response.content.startswith(b"%PDF-")
