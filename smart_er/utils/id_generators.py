# smart_er/utils/id_generators.py
import re

from sqlalchemy.orm import Session

from smart_er.models.patient import Patient

HN_WIDTH = 7
HN_PATTERN = re.compile(r"^\d{1,20}$")


def is_valid_hn(hn: str) -> bool:
    """HN is a numeric string; registration pads it, scanners send it padded."""
    return bool(HN_PATTERN.match(hn))


def generate_hn(db: Session) -> str:
    """
    Generate the next hospital number: highest numeric HN + 1, zero-padded to 7 digits.

    Example: 0000001, 0000002, ..., 0000020 -> 0000021

    HNs that are not purely numeric (legacy imports) are skipped.
    """
    existing_hns = db.query(Patient.hn).all()

    max_seq = 0
    for (hn,) in existing_hns:
        if hn and is_valid_hn(hn):
            max_seq = max(max_seq, int(hn))

    next_seq = max_seq + 1
    return f"{next_seq:0{HN_WIDTH}d}"
