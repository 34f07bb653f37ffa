"""
Party extraction from the portal's ``sujetosProcesales`` text.

The primary lookup returns the parties as one free-text field such as
``"Demandante: JUAN PEREZ | Demandado: MARIA LOPEZ | Apoderado: ..."``. This is
the only place that parses it; if the portal ever returns structured party
fields, replace this module and keep ``Parties`` as is.
"""

import re
from typing import Dict, NamedTuple, Optional

from judicial_case_aggregator.shared.constants import NOT_AVAILABLE

_PLAINTIFF_RE = re.compile(r"Demandante\s*:\s*([^|]*)", re.IGNORECASE)
_DEFENDANT_RE = re.compile(r"Demandado\s*:\s*([^|]*)", re.IGNORECASE)
_SEGMENT_RE = re.compile(r"^\s*([^:|]+?)\s*:\s*(.*?)\s*$", re.DOTALL)


class Parties(NamedTuple):
    plaintiff: str
    defendant: str


def _capture(pattern: re.Pattern, blob: str) -> str:
    match = pattern.search(blob)
    if not match:
        return NOT_AVAILABLE
    value = match.group(1).strip()
    return value or NOT_AVAILABLE


def extract_parties(blob: Optional[str]) -> Parties:
    """Pull plaintiff and defendant names out of the parties text.

    Args:
        blob: The raw ``sujetosProcesales`` string (None is treated as empty)

    Returns:
        Parties with ``NOT AVAILABLE`` for any label that is missing or empty
    """
    blob = blob or ""
    return Parties(
        plaintiff=_capture(_PLAINTIFF_RE, blob),
        defendant=_capture(_DEFENDANT_RE, blob),
    )


def extract_labeled_segments(blob: Optional[str]) -> Dict[str, str]:
    """Split the parties text into ``{label: value}`` (labels lower-cased).

    Segments without a colon are skipped; the first occurrence of a label wins.
    """
    segments: Dict[str, str] = {}
    for part in (blob or "").split("|"):
        match = _SEGMENT_RE.match(part)
        if not match:
            continue
        label, value = match.group(1).strip().lower(), match.group(2).strip()
        if label and value and label not in segments:
            segments[label] = value
    return segments
