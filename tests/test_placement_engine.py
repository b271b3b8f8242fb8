from datetime import datetime

import pytest
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from app.database import session_scope
from app.models.student import Student, StudentPlacement
from app.services import placement_engine
from app.services.placement_engine import compute_transition, apply_transition


OFFER_DATE = datetime(2025, 9, 1, 10, 30)


def _snapshot(student):
    return (
        student.placement_status,
        student.can_sit_for_more,
        student.final_placed_company,
        student.final_placed_job_title,
        student.final_placed_ctc,
        student.final_placed_job_type,
        student.final_placed_date,
    )


# ============ THE RULE ============

@pytest.mark.parametrize("ctc", ["3 LPA", "5.5 LPA", "6 LPA", None, "TBD"])
def test_offer_at_or_below_threshold_places_student(ctc):
    transition = compute_transition("Acme", "SDE", ctc=ctc, offer_date=OFFER_DATE)
    assert transition.placement_status == "PLACED"
    assert transition.can_sit_for_more is True


@pytest.mark.parametrize("ctc", ["6.5 LPA", "7.0 LPA", "12-14 LPA", "45 LPA"])
def test_offer_above_threshold_places_student_final(ctc):
    transition = compute_transition("Acme", "SDE", ctc=ctc, offer_date=OFFER_DATE)
    assert transition.placement_status == "PLACED_FINAL"
    assert transition.can_sit_for_more is False


def test_transition_keeps_raw_ctc_text():
    transition = compute_transition("Acme", "SDE", ctc="10-14 LPA", job_type="FTE", offer_date=OFFER_DATE)
    assert transition.final_placed_ctc == "10-14 LPA"
    assert transition.final_placed_job_type == "FTE"
    assert transition.final_placed_date == OFFER_DATE


def test_applying_same_transition_twice_is_idempotent(make_student):
    student = make_student()
    transition = compute_transition("Acme", "SDE", ctc="9 LPA", offer_date=OFFER_DATE)

    apply_transition(student, transition)
    once = _snapshot(student)
    apply_transition(student, transition)

    assert _snapshot(student) == once


# ============ OFFER WORKFLOW ============

def test_pending_offer_does_not_touch_student(db, make_student):
    student = make_student()

    placement = placement_engine.record_offer(db, student.id, "Acme", "SDE", ctc="9 LPA")

    assert placement.offer_status == "PENDING"
    assert placement.is_accepted is False
    assert student.placement_status == "OPTED_IN"
    assert student.final_placed_company is None


def test_accepted_offer_takes_ctc_from_job(db, make_student, make_job):
    student = make_student()
    job = make_job(company="Acme", ctc="7.0 LPA", stipend="40k", type="INTERN_PLUS_FTE")

    placement = placement_engine.record_offer(
        db, student.id, "Acme", "SDE", job_id=job.id, is_accepted=True
    )

    assert placement.ctc == "7.0 LPA"
    assert placement.stipend == "40k"
    assert placement.offer_status == "ACCEPTED"
    assert student.placement_status == "PLACED_FINAL"
    assert student.can_sit_for_more is False
    assert student.final_placed_company == "Acme"
    assert student.final_placed_job_type == "INTERN_PLUS_FTE"


def test_record_offer_unknown_student_or_job(db, make_student):
    assert placement_engine.record_offer(db, 9999, "Acme", "SDE") is None

    student = make_student()
    assert placement_engine.record_offer(db, student.id, "Acme", "SDE", job_id=9999) is None
    assert db.query(StudentPlacement).count() == 0


def test_accepting_via_update_fires_once(db, make_student):
    student = make_student()
    placement = placement_engine.record_offer(
        db, student.id, "Acme", "SDE", ctc="8 LPA", offer_date=OFFER_DATE
    )

    placement_engine.update_offer(db, student.id, placement.id, {"offer_status": "ACCEPTED"})
    once = _snapshot(student)
    updated = placement_engine.update_offer(db, student.id, placement.id, {"is_accepted": True})

    assert updated.is_accepted is True
    assert updated.offer_status == "ACCEPTED"
    assert _snapshot(student) == once
    assert student.placement_status == "PLACED_FINAL"
    assert student.final_placed_date == OFFER_DATE


def test_most_recent_accepted_offer_wins(db, make_student):
    student = make_student()
    placement_engine.record_offer(db, student.id, "BigCo", "SDE", ctc="12 LPA", is_accepted=True)
    assert student.placement_status == "PLACED_FINAL"

    placement_engine.record_offer(db, student.id, "SmallCo", "Analyst", ctc="5 LPA", is_accepted=True)

    assert student.placement_status == "PLACED"
    assert student.can_sit_for_more is True
    assert student.final_placed_company == "SmallCo"
    assert student.final_placed_ctc == "5 LPA"


def test_rejecting_accepted_offer_does_not_roll_back(db, make_student):
    student = make_student()
    placement = placement_engine.record_offer(
        db, student.id, "Acme", "SDE", ctc="9 LPA", is_accepted=True
    )

    updated = placement_engine.update_offer(
        db, student.id, placement.id, {"offer_status": "REJECTED", "is_accepted": False}
    )

    assert updated.offer_status == "REJECTED"
    assert updated.is_accepted is False
    assert student.placement_status == "PLACED_FINAL"
    assert student.final_placed_company == "Acme"


def test_deleting_accepted_offer_does_not_roll_back(db, make_student):
    student = make_student()
    placement = placement_engine.record_offer(
        db, student.id, "Acme", "SDE", ctc="4 LPA", is_accepted=True
    )

    assert placement_engine.delete_offer(db, student.id, placement.id) is True
    assert db.query(StudentPlacement).count() == 0
    assert student.placement_status == "PLACED"
    assert student.final_placed_company == "Acme"


def test_offer_of_another_student_is_not_found(db, make_student):
    owner = make_student()
    other = make_student()
    placement = placement_engine.record_offer(db, owner.id, "Acme", "SDE", ctc="9 LPA")

    assert placement_engine.update_offer(db, other.id, placement.id, {"is_accepted": True}) is None
    assert placement_engine.delete_offer(db, other.id, placement.id) is False

    db.refresh(placement)
    assert placement.is_accepted is False
    assert other.placement_status == "OPTED_IN"
    assert owner.placement_status == "OPTED_IN"


def test_notes_only_update_leaves_status(db, make_student):
    student = make_student()
    placement = placement_engine.record_offer(db, student.id, "Acme", "SDE")

    updated = placement_engine.update_offer(db, student.id, placement.id, {"notes": "Joining in July"})

    assert updated.notes == "Joining in July"
    assert updated.offer_status == "PENDING"
    assert student.placement_status == "OPTED_IN"


# ============ MANUAL OVERRIDE ============

def test_manual_reset_clears_snapshot(db, make_student):
    student = make_student()
    placement_engine.record_offer(db, student.id, "Acme", "SDE", ctc="9 LPA", is_accepted=True)

    updated = placement_engine.update_student(db, student.id, {"placement_status": "OPTED_OUT"})

    assert updated.placement_status == "OPTED_OUT"
    assert updated.can_sit_for_more is True
    assert updated.final_placed_company is None
    assert updated.final_placed_job_title is None
    assert updated.final_placed_ctc is None
    assert updated.final_placed_job_type is None
    assert updated.final_placed_date is None


def test_manual_placed_status_is_derived_from_ctc(db, make_student):
    student = make_student()

    updated = placement_engine.update_student(db, student.id, {
        "placement_status": "PLACED_FINAL",
        "final_placed_company": "Acme",
        "final_placed_job_title": "SDE",
        "final_placed_ctc": "4 LPA",
    })

    assert updated.placement_status == "PLACED"
    assert updated.can_sit_for_more is True

    updated = placement_engine.update_student(db, student.id, {"final_placed_ctc": "11 LPA"})

    assert updated.placement_status == "PLACED_FINAL"
    assert updated.can_sit_for_more is False
    assert updated.final_placed_company == "Acme"


def test_profile_edit_leaves_placement_alone(db, make_student):
    student = make_student()
    placement_engine.record_offer(db, student.id, "Acme", "SDE", ctc="9 LPA", is_accepted=True)

    updated = placement_engine.update_student(db, student.id, {"cgpa": 8.7, "mobile": "9876543210"})

    assert updated.cgpa == 8.7
    assert updated.mobile == "9876543210"
    assert updated.placement_status == "PLACED_FINAL"
    assert updated.final_placed_company == "Acme"


def test_update_unknown_student(db):
    assert placement_engine.update_student(db, 12345, {"cgpa": 7.0}) is None


def test_placement_details_for_unplaced_student_rejected(db, make_student):
    student = make_student()

    with pytest.raises(ValueError):
        placement_engine.update_student(db, student.id, {"final_placed_company": "Acme"})

    db.refresh(student)
    assert student.placement_status == "OPTED_IN"
    assert student.final_placed_company is None


# ============ ATOMICITY ============

def test_failed_commit_leaves_no_offer_and_no_status_change(db, make_student, monkeypatch):
    student = make_student()
    student_id = student.id
    flush = db.flush

    def failing_commit():
        flush()
        raise OperationalError("COMMIT", {}, Exception("database is locked"))

    monkeypatch.setattr(db, "commit", failing_commit)

    with pytest.raises(SQLAlchemyError):
        placement_engine.record_offer(db, student_id, "Acme", "SDE", ctc="9 LPA", is_accepted=True)

    with session_scope() as fresh:
        assert fresh.query(StudentPlacement).count() == 0
        stored = fresh.query(Student).filter(Student.id == student_id).one()
        assert stored.placement_status == "OPTED_IN"
        assert stored.can_sit_for_more is True
        assert stored.final_placed_company is None
