"""
Case number validation.

Colombian case numbers (*números de radicación*) are 23 digits. The portal
accepts a slightly wider range, so the check admits 20-25 digits and leaves the
stricter 23-digit rule to input forms.
"""

import re

from judicial_case_aggregator.shared.errors import ValidationFailure

EXPECTED_LENGTH = 23
MIN_LENGTH = 20
MAX_LENGTH = 25

_CASE_NUMBER_RE = re.compile(rf"\d{{{MIN_LENGTH},{MAX_LENGTH}}}", re.ASCII)


def validate(case_number: object) -> bool:
    """Return True if ``case_number`` has the shape of a case number.

    Never raises; non-string input is simply invalid.
    """
    if not isinstance(case_number, str):
        return False
    return _CASE_NUMBER_RE.fullmatch(case_number.strip()) is not None


def require_valid(case_number: object) -> str:
    """Return the trimmed case number or raise ``ValidationFailure``."""
    if not validate(case_number):
        raise ValidationFailure(case_number)
    return case_number.strip()
