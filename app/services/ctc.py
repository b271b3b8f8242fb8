"""
CTC (Cost To Company) helpers.

Compensation is stored as free text ("12.5 LPA", "10-14 LPA", "50k/month").
Everything that needs a number - the eligibility rule, category bands and
dashboard rollups - goes through parse_ctc so they all agree.

parse_ctc is lenient on purpose:
- Only the FIRST numeral is read, so a range "10-14 LPA" counts as 10.
- Units are ignored, so "50k/month" counts as 50.
- Missing or number-free text counts as 0, which the eligibility rule
  treats as at-or-below threshold (student stays eligible). No error is
  ever raised for bad CTC text.
"""

import re
from typing import Optional

from app.models.job import JobCategory

# First integer or decimal numeral in the string
CTC_NUMBER_PATTERN = re.compile(r'(\d+(?:\.\d+)?)')

# Accepted offers at or below this (in LPA) leave the student free to
# interview for offers up to 2x the value ("2x rule").
ELIGIBILITY_THRESHOLD_LPA = 6.0


def parse_ctc(value: Optional[str]) -> float:
    """
    Extract a numeric lakhs-per-annum value from free-text CTC.

    Examples:
        parse_ctc("12.5 LPA")  -> 12.5
        parse_ctc("10-14 LPA") -> 10.0
        parse_ctc("50k/month") -> 50.0
        parse_ctc("")          -> 0.0
        parse_ctc(None)        -> 0.0
    """
    if not value:
        return 0.0

    match = CTC_NUMBER_PATTERN.search(value)
    if not match:
        return 0.0

    return float(match.group(1))


def can_sit_for_more(ctc: Optional[str]) -> bool:
    """Whether an accepted offer of this CTC leaves the student eligible for more offers."""
    return parse_ctc(ctc) <= ELIGIBILITY_THRESHOLD_LPA


def categorize_ctc(ctc: Optional[str]) -> JobCategory:
    """
    Map a CTC string to a job category band.

    MARQUE: 20L+, SUPER_DREAM: 10-20L, DREAM: 6-10L,
    OTHER: 4-6L (and unknown), REGULAR: below 4L.
    """
    if not ctc or not CTC_NUMBER_PATTERN.search(ctc):
        return JobCategory.OTHER

    amount = parse_ctc(ctc)

    if amount >= 20:
        return JobCategory.MARQUE
    if amount >= 10:
        return JobCategory.SUPER_DREAM
    if amount >= 6:
        return JobCategory.DREAM
    if amount >= 4:
        return JobCategory.OTHER

    return JobCategory.REGULAR
