import pandas as pd
import pytest

from app.models.student import Student
from app.services import student_importer
from app.services.student_importer import (
    clean_value, parse_arrears, extract_batch, extract_section, clean_department,
)


SHEET = """Placement Registration 2025-26,,,,,,,
BTech AIDS Section A,,,,,,,
SN,Name,Rollno,Dept,Mobile,UG CGPA (upto 6th Semester),History of Arrears,Current Backlogs/Arrears
1,Asha Rao,22110001,BTech AIDS,9876500001,8.42,0,0
2,Ravi Kumar,22110002,BTech AIDS,_,7.1,2,1 (DBMS)
,,,,,,,
SN,Name,Rollno,Dept,Mobile,UG CGPA (upto 6th Semester),History of Arrears,Current Backlogs/Arrears
3,Meera Iyer,22110003,BTech AIDS,9876500003,,,
"""


def test_value_cleaning():
    assert clean_value(" _ ") is None
    assert clean_value(float("nan")) is None
    assert clean_value("") is None
    assert clean_value(" 8.5 ") == "8.5"
    assert parse_arrears("1 (DBMS)") == 1
    assert parse_arrears("_") == 0


def test_batch_and_section_extraction():
    assert extract_batch("22110172") == "2022-2026"
    assert extract_batch("AB123", "BTech AIDS 2021 - 2025") == "2021-2025"
    assert extract_batch("AB123") == student_importer.DEFAULT_BATCH
    assert extract_section("BTech AIDS (B).csv") == "B"
    assert extract_section("students.csv") is None
    assert clean_department("btech   CSE", "") == "BTech CSE"
    assert clean_department("anything", "BTech CSE IoT (A).csv") == "BTech CSE (IoT)"


def test_read_rows_skips_titles_blanks_and_repeated_headers():
    frame = student_importer.read_student_rows(SHEET)
    assert isinstance(frame, pd.DataFrame)
    assert frame["Rollno"].tolist() == ["22110001", "22110002", "22110003"]
    assert "Current Backlogs/Arrears" in frame.columns


def test_missing_header_is_rejected():
    with pytest.raises(ValueError):
        student_importer.read_student_rows("just,some,values\n1,2,3\n")


def test_import_students(db):
    summary = student_importer.import_students(db, SHEET, filename="BTech AIDS (A).csv")

    assert (summary.imported, summary.skipped, summary.failed) == (3, 0, 0)

    ravi = db.query(Student).filter(Student.roll_number == "22110002").one()
    assert ravi.section == "A"
    assert ravi.batch == "2022-2026"
    assert ravi.mobile is None
    assert ravi.cgpa == 7.1
    assert ravi.current_arrears == 1
    assert ravi.placement_status == "OPTED_IN"
    assert ravi.can_sit_for_more is True

    meera = db.query(Student).filter(Student.roll_number == "22110003").one()
    assert meera.cgpa is None
    assert meera.current_arrears == 0


def test_reimport_skips_existing(db):
    student_importer.import_students(db, SHEET, filename="BTech AIDS (A).csv")

    summary = student_importer.import_students(db, SHEET, filename="BTech AIDS (A).csv")

    assert (summary.imported, summary.skipped) == (0, 3)
    assert db.query(Student).count() == 3


def test_header_needs_whole_cells():
    sheet = (
        "SSN College - Name and Rollno list\n"
        "SN,Name,Rollno,Dept\n"
        "1,Asha Rao,22110001,BTech AIDS\n"
    )
    frame = student_importer.read_student_rows(sheet)
    assert frame["Name"].tolist() == ["Asha Rao"]

    with pytest.raises(ValueError):
        student_importer.read_student_rows("SSN,Names,Rollno list\n1,2,3\n")


def test_empty_sheet_is_rejected():
    with pytest.raises(ValueError):
        student_importer.read_student_rows("")
