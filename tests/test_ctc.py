import pytest

from app.models.job import JobCategory
from app.services.ctc import parse_ctc, can_sit_for_more, categorize_ctc


@pytest.mark.parametrize("value, expected", [
    ("12.5 LPA", 12.5),
    ("10-14 LPA", 10.0),
    ("50k/month", 50.0),
    ("INR 7 LPA", 7.0),
    ("", 0.0),
    (None, 0.0),
    ("TBD", 0.0),
])
def test_parse_ctc_reads_first_numeral(value, expected):
    assert parse_ctc(value) == expected


def test_threshold_is_inclusive():
    assert can_sit_for_more("6 LPA") is True
    assert can_sit_for_more("6.0 LPA") is True
    assert can_sit_for_more("6.01 LPA") is False


def test_unparseable_ctc_keeps_student_eligible():
    assert can_sit_for_more(None) is True
    assert can_sit_for_more("Not disclosed") is True


@pytest.mark.parametrize("ctc, category", [
    ("25 LPA", JobCategory.MARQUE),
    ("20 LPA", JobCategory.MARQUE),
    ("12 LPA", JobCategory.SUPER_DREAM),
    ("7.5 LPA", JobCategory.DREAM),
    ("4.5 LPA", JobCategory.OTHER),
    ("3.6 LPA", JobCategory.REGULAR),
    (None, JobCategory.OTHER),
    ("Competitive", JobCategory.OTHER),
])
def test_categorize_ctc_bands(ctc, category):
    assert categorize_ctc(ctc) == category
