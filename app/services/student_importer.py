"""
Bulk student import from the placement office's CSV sheets.

Sheet format:
- A few title rows, then a header row whose cells include "SN", "Name", "Rollno"
- Columns: SN, Name, Rollno, Dept, Mobile,
  "UG CGPA (upto 6th Semester)", "History of Arrears", "Current Backlogs/Arrears"
- The section is encoded in the file name, e.g. "BTech AIDS (A).csv"
- Blank cells and "_" both mean "not given"

Every imported student starts OPTED_IN. Existing roll numbers are skipped.
"""

import io
import logging
import re
from dataclasses import dataclass, field
from typing import Optional

import pandas as pd
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.student import Student, PlacementStatus
from app.services import db_service

logger = logging.getLogger(__name__)

DEFAULT_BATCH = "2022-2026"

HEADER_CELLS = {"SN", "Name", "Rollno"}
CGPA_COLUMNS = ("UG CGPA (upto 6th Semester)", "CGPA")
HISTORY_COLUMNS = ("History of Arrears",)
CURRENT_COLUMNS = ("Current Backlogs/Arrears",)


@dataclass
class ImportSummary:
    imported: int = 0
    skipped: int = 0
    failed: int = 0
    errors: list = field(default_factory=list)


# ============ VALUE CLEANING ============

def clean_value(value) -> Optional[str]:
    """Missing cells, blanks and "_" placeholders become None."""
    if value is None or pd.isna(value):
        return None
    value = str(value).strip()
    if value in ("", "_"):
        return None
    return value


def parse_float_or_none(value: Optional[str]) -> Optional[float]:
    cleaned = clean_value(value)
    if not cleaned:
        return None
    try:
        return float(cleaned)
    except ValueError:
        return None


def parse_arrears(value: Optional[str]) -> int:
    cleaned = clean_value(value)
    if not cleaned:
        return 0
    match = re.match(r'\d+', cleaned)
    return int(match.group()) if match else 0


def extract_batch(roll_number: str, department: str = "") -> str:
    """
    Roll numbers start with the two-digit admission year: "22110172" -> "2022-2026".
    Falls back to a "2022 - 2026" pattern in the department, then DEFAULT_BATCH.
    """
    match = re.match(r'^(\d{2})', roll_number)
    if match:
        start_year = 2000 + int(match.group(1))
        return f"{start_year}-{start_year + 4}"

    match = re.search(r'(\d{4})\s*-\s*(\d{4})', department or "")
    if match:
        return f"{match.group(1)}-{match.group(2)}"

    return DEFAULT_BATCH


def extract_section(filename: str) -> Optional[str]:
    """"BTech AIDS (A).csv" -> "A"."""
    match = re.search(r'\(([AB])\)', filename or "")
    return match.group(1) if match else None


def clean_department(department: str, filename: str = "") -> str:
    if "BTech AIDS" in filename:
        return "BTech AIDS"
    if "BTech CSE Cyber Security" in filename or "BTech CSE (CS)" in filename:
        return "BTech CSE (Cyber Security)"
    if "BTech CSE IoT" in filename:
        return "BTech CSE (IoT)"
    return re.sub(r'BTech\s+', 'BTech ', (department or "").strip(), flags=re.IGNORECASE)


def _first(row: pd.Series, columns: tuple) -> Optional[str]:
    for column in columns:
        value = clean_value(row.get(column))
        if value:
            return value
    return None


# ============ IMPORT ============

def read_student_rows(content: str) -> pd.DataFrame:
    """
    Locate the header row and return the student rows beneath it.

    Title rows above the header may have fewer cells than the table, so the
    sheet is first read without a header at its widest row count.

    Raises:
        ValueError: if no row has SN, Name and Rollno cells
    """
    width = max((line.count(",") for line in content.splitlines()), default=0) + 1
    try:
        raw = pd.read_csv(io.StringIO(content), header=None, names=list(range(width)), dtype=str)
    except pd.errors.EmptyDataError:
        raise ValueError("CSV file is empty")

    # Whole-cell match: a title like "SSN Name Rollno list" is not a header
    is_header = raw.apply(
        lambda row: HEADER_CELLS.issubset(set(row.dropna().str.strip())),
        axis=1
    ) if not raw.empty else pd.Series(dtype=bool)
    if not is_header.any():
        raise ValueError("Could not find header row with SN, Name, Rollno")
    header_pos = int(is_header.values.argmax())

    df = raw.iloc[header_pos + 1:].copy()
    df.columns = raw.iloc[header_pos].fillna("")
    df.columns = df.columns.str.strip()
    df = df.loc[:, df.columns != ""]

    names = df["Name"].map(clean_value)
    roll_numbers = df["Rollno"].map(clean_value)
    # Blank lines and header rows repeated mid-sheet
    keep = names.notna() & roll_numbers.notna() & (names != "Name")
    return df[keep].reset_index(drop=True)


def import_students(db: Session, content: str, filename: str = "") -> ImportSummary:
    """
    Create students from a CSV sheet.

    Args:
        db: Database session
        content: Full CSV text
        filename: Original file name (section and department hints)

    Returns:
        ImportSummary with counts and per-row errors
    """
    summary = ImportSummary()
    section = extract_section(filename)

    for index, row in read_student_rows(content).iterrows():
        row_number = index + 1
        roll_number = clean_value(row.get("Rollno"))
        name = clean_value(row.get("Name"))

        if db_service.get_student_by_roll_number(db, roll_number):
            summary.skipped += 1
            logger.info(f"[{row_number}] Skipped (exists): {name} ({roll_number})")
            continue

        department = clean_value(row.get("Dept")) or ""
        student = Student(
            name=name,
            roll_number=roll_number,
            mobile=clean_value(row.get("Mobile")),
            department=clean_department(department, filename),
            batch=extract_batch(roll_number, department),
            section=section,
            cgpa=parse_float_or_none(_first(row, CGPA_COLUMNS)),
            history_of_arrears=_first(row, HISTORY_COLUMNS),
            current_arrears=parse_arrears(_first(row, CURRENT_COLUMNS)),
            placement_status=PlacementStatus.OPTED_IN.value,
            can_sit_for_more=True,
        )

        try:
            db.add(student)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            summary.failed += 1
            summary.errors.append({"row": row_number, "roll_number": roll_number, "error": str(e)})
            logger.error(f"[{row_number}] Failed: {name} ({roll_number}): {e}")
            continue

        summary.imported += 1
        logger.info(f"[{row_number}] Imported: {name} ({roll_number}) - CGPA: {student.cgpa or 'N/A'}")

    logger.info(
        f"Import summary: {summary.imported} imported, "
        f"{summary.skipped} skipped, {summary.failed} failed"
    )
    return summary
