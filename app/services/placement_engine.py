"""
Placement eligibility engine.

Owns every mutation of a student's placement state:
- record_offer / update_offer / delete_offer: the offer workflow
  (PENDING -> ACCEPTED | REJECTED) for StudentPlacement rows
- update_student: the admin manual-override path

The rule ("2x rule"): when an offer is accepted its CTC is parsed with
parse_ctc. At or below 6 LPA the student becomes PLACED and may keep
interviewing; above it the student becomes PLACED_FINAL and may not.
The accepted offer is copied into the student's final_placed_* snapshot.
The most recently accepted offer always wins, even if an earlier one paid more.

Acceptance is a one-way door: rejecting or deleting an offer later never
rolls the student back.

Every operation locks the student row (SELECT ... FOR UPDATE) and commits
the offer write and the student write together, so two concurrent accepts
for the same student are serialized and never half-applied.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.job import Job
from app.models.student import (
    Student, StudentPlacement, PlacementStatus, OfferStatus, PLACED_STATUSES
)
from app.services.ctc import can_sit_for_more

logger = logging.getLogger(__name__)

# Student fields an admin may edit directly
STUDENT_PROFILE_FIELDS = (
    "email", "mobile", "cgpa", "current_arrears", "history_of_arrears",
)

# Snapshot of the binding offer, engine-owned
SNAPSHOT_FIELDS = (
    "final_placed_company",
    "final_placed_job_title",
    "final_placed_ctc",
    "final_placed_job_type",
    "final_placed_date",
)


@dataclass(frozen=True)
class PlacementTransition:
    """New placement state for a student after accepting an offer."""
    placement_status: str
    can_sit_for_more: bool
    final_placed_company: str
    final_placed_job_title: str
    final_placed_ctc: Optional[str]
    final_placed_job_type: Optional[str]
    final_placed_date: datetime


# ============ THE RULE ============

def compute_transition(
    company: str,
    job_title: str,
    ctc: Optional[str] = None,
    job_type: Optional[str] = None,
    offer_date: Optional[datetime] = None
) -> PlacementTransition:
    """
    Compute a student's placement state from an accepted offer.

    Pure function of its inputs - the student's prior state plays no part,
    which makes re-applying the same offer idempotent.
    The CTC string is stored raw; only the eligibility flag uses its parsed value.
    """
    eligible_for_more = can_sit_for_more(ctc)

    return PlacementTransition(
        placement_status=(
            PlacementStatus.PLACED.value if eligible_for_more
            else PlacementStatus.PLACED_FINAL.value
        ),
        can_sit_for_more=eligible_for_more,
        final_placed_company=company,
        final_placed_job_title=job_title,
        final_placed_ctc=ctc,
        final_placed_job_type=job_type,
        final_placed_date=offer_date or datetime.utcnow(),
    )


def apply_transition(student: Student, transition: PlacementTransition) -> Student:
    """Copy a transition onto a student row (no commit)."""
    student.placement_status = transition.placement_status
    student.can_sit_for_more = transition.can_sit_for_more
    student.final_placed_company = transition.final_placed_company
    student.final_placed_job_title = transition.final_placed_job_title
    student.final_placed_ctc = transition.final_placed_ctc
    student.final_placed_job_type = transition.final_placed_job_type
    student.final_placed_date = transition.final_placed_date

    logger.info(
        f"Student {student.id} -> {transition.placement_status} "
        f"(can_sit_for_more={transition.can_sit_for_more}) "
        f"via offer from {transition.final_placed_company} [{transition.final_placed_ctc}]"
    )
    return student


def _accept(student: Student, placement: StudentPlacement) -> None:
    transition = compute_transition(
        company=placement.company,
        job_title=placement.job_title,
        ctc=placement.ctc,
        job_type=placement.job_type,
        offer_date=placement.offer_date,
    )
    apply_transition(student, transition)


# ============ HELPERS ============

def _lock_student(db: Session, student_id: int) -> Optional[Student]:
    """Fetch a student row and hold its lock until commit/rollback."""
    return db.query(Student).filter(
        Student.id == student_id
    ).with_for_update().first()


def _get_owned_placement(
    db: Session,
    student_id: int,
    placement_id: int
) -> Optional[StudentPlacement]:
    """
    Fetch a placement only if it belongs to the given student.

    A placement owned by someone else is reported exactly like a missing one,
    so callers cannot discover other students' offers.
    """
    placement = db.query(StudentPlacement).filter(
        StudentPlacement.id == placement_id
    ).first()

    if not placement or placement.student_id != student_id:
        return None

    return placement


def _commit(db: Session, action: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Failed to {action}; transaction rolled back")
        raise


def _sync_accepted(offer_status: Optional[str], is_accepted: Optional[bool]) -> tuple:
    """
    Resolve (offer_status, is_accepted) so that is_accepted == (status == ACCEPTED).

    is_accepted wins when both are given and disagree.
    """
    if is_accepted is None:
        is_accepted = offer_status == OfferStatus.ACCEPTED.value

    if is_accepted:
        offer_status = OfferStatus.ACCEPTED.value
    elif offer_status in (None, OfferStatus.ACCEPTED.value):
        offer_status = OfferStatus.PENDING.value

    return offer_status, is_accepted


# ============ OFFER WORKFLOW ============

def record_offer(
    db: Session,
    student_id: int,
    company: str,
    job_title: str,
    job_id: Optional[int] = None,
    ctc: Optional[str] = None,
    stipend: Optional[str] = None,
    job_type: Optional[str] = None,
    offer_date: Optional[datetime] = None,
    offer_status: Optional[str] = None,
    is_accepted: Optional[bool] = None,
    notes: Optional[str] = None
) -> Optional[StudentPlacement]:
    """
    Record a new offer for a student.

    Starts PENDING unless created already accepted (e.g. back-filling
    historical offers), in which case the eligibility rule fires at once.
    When the offer references a job, missing ctc/stipend/job_type are
    taken from that job.

    Returns:
        The new StudentPlacement, or None if the student or job does not exist
    """
    student = _lock_student(db, student_id)
    if not student:
        return None

    if job_id is not None:
        job = db.query(Job).filter(Job.id == job_id).first()
        if not job:
            return None
        ctc = ctc or job.ctc
        stipend = stipend or job.stipend
        job_type = job_type or job.type

    offer_status, is_accepted = _sync_accepted(offer_status, is_accepted)

    placement = StudentPlacement(
        student_id=student.id,
        job_id=job_id,
        company=company,
        job_title=job_title,
        ctc=ctc or None,
        stipend=stipend or None,
        job_type=job_type or None,
        offer_date=offer_date or datetime.utcnow(),
        offer_status=offer_status,
        is_accepted=is_accepted,
        notes=notes or None,
    )
    db.add(placement)

    if is_accepted:
        _accept(student, placement)

    _commit(db, f"record offer for student {student_id}")
    db.refresh(placement)
    return placement


def update_offer(
    db: Session,
    student_id: int,
    placement_id: int,
    patch: dict
) -> Optional[StudentPlacement]:
    """
    Patch an offer's offer_status / is_accepted / notes.

    The eligibility rule fires only when is_accepted flips false -> true.
    Rejecting a previously accepted offer leaves the student untouched.

    Returns:
        The updated StudentPlacement, or None if it does not exist or
        belongs to a different student
    """
    student = _lock_student(db, student_id)
    if not student:
        return None

    placement = _get_owned_placement(db, student_id, placement_id)
    if not placement:
        return None

    was_accepted = placement.is_accepted

    if patch.get("offer_status") is not None or patch.get("is_accepted") is not None:
        placement.offer_status, placement.is_accepted = _sync_accepted(
            patch.get("offer_status") or placement.offer_status,
            patch.get("is_accepted")
        )

    if "notes" in patch:
        placement.notes = patch["notes"]

    if placement.is_accepted and not was_accepted:
        _accept(student, placement)

    _commit(db, f"update offer {placement_id} for student {student_id}")
    db.refresh(placement)
    return placement


def delete_offer(db: Session, student_id: int, placement_id: int) -> bool:
    """
    Delete an offer. Student placement state is NOT reverted.

    Returns:
        True if deleted, False if it does not exist or belongs to a different student
    """
    placement = _get_owned_placement(db, student_id, placement_id)
    if not placement:
        return False

    db.delete(placement)
    _commit(db, f"delete offer {placement_id} for student {student_id}")
    return True


# ============ MANUAL OVERRIDE ============

def update_student(db: Session, student_id: int, patch: dict) -> Optional[Student]:
    """
    Admin edit of a student record.

    Profile fields are copied as given. For placement fields:
    - status outside PLACED / PLACED_FINAL clears the whole snapshot and
      resets can_sit_for_more to True
    - otherwise the snapshot fields given are stored and both
      can_sit_for_more and the status are re-derived from final_placed_ctc
      with the same rule the offer workflow uses
      (so PLACED_FINAL with a CTC at or below the threshold is stored as PLACED)

    Returns:
        The updated Student, or None if it does not exist

    Raises:
        ValueError: snapshot values sent for a student who will not be placed
    """
    student = _lock_student(db, student_id)
    if not student:
        return None

    new_status = patch.get("placement_status") or student.placement_status
    if new_status not in PLACED_STATUSES and any(
        patch.get(field) is not None for field in SNAPSHOT_FIELDS
    ):
        db.rollback()
        raise ValueError(
            f"Placement details need status PLACED or PLACED_FINAL, not {new_status}"
        )

    for field in STUDENT_PROFILE_FIELDS:
        if field in patch:
            setattr(student, field, patch[field])

    touches_placement = "placement_status" in patch or any(
        field in patch for field in SNAPSHOT_FIELDS
    )

    if patch.get("placement_status") is not None:
        student.placement_status = patch["placement_status"]

    if student.placement_status not in PLACED_STATUSES:
        for field in SNAPSHOT_FIELDS:
            setattr(student, field, None)
        student.can_sit_for_more = True
    elif touches_placement:
        for field in SNAPSHOT_FIELDS:
            if field in patch:
                setattr(student, field, patch[field])
        eligible_for_more = can_sit_for_more(student.final_placed_ctc)
        student.can_sit_for_more = eligible_for_more
        student.placement_status = (
            PlacementStatus.PLACED.value if eligible_for_more
            else PlacementStatus.PLACED_FINAL.value
        )
        logger.info(
            f"Student {student.id} manually set to {student.placement_status} "
            f"(can_sit_for_more={eligible_for_more}) [{student.final_placed_ctc}]"
        )

    _commit(db, f"update student {student_id}")
    db.refresh(student)
    return student
